from flask import jsonify


def api_error(message, status=400, **extra):
    payload = {"success": False, "error": message, **extra}
    return jsonify(payload), status


def api_ok(data=None, status=200, **extra):
    return jsonify({"success": True, "data": data, **extra}), status


def iso(dt):
    return dt.isoformat() + "Z" if dt else None


def client_ip(request):
    ip = request.headers.get("CF-Connecting-IP")
    if not ip:
        forwarded = request.headers.get("X-Forwarded-For", "")
        ip = forwarded.split(",")[0].strip() if forwarded else request.remote_addr
    return ip or "unknown"
