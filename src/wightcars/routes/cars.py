from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required
from .. import fallback, listings
from ..errors import StoreUnavailable, json_body
from ..filters import CarFilters
from ..identity import current_identity
from ..utils import api_ok
import logging

bp = Blueprint("cars", __name__)
log = logging.getLogger("wightcars.cars")

POPULAR_CAR_MAKES = [
    {"name": "Ford", "models": ["Fiesta", "Focus", "Mondeo", "Kuga", "Puma", "EcoSport", "Mustang"]},
    {"name": "Vauxhall", "models": ["Corsa", "Astra", "Insignia", "Mokka", "Crossland", "Grandland"]},
    {"name": "BMW", "models": ["1 Series", "2 Series", "3 Series", "4 Series", "5 Series", "X1", "X3", "X5"]},
    {"name": "Volkswagen", "models": ["Polo", "Golf", "Passat", "Tiguan", "T-Roc", "Arteon"]},
    {"name": "Audi", "models": ["A1", "A3", "A4", "A6", "Q2", "Q3", "Q5", "TT"]},
    {"name": "Mercedes-Benz", "models": ["A-Class", "C-Class", "E-Class", "CLA", "GLA", "GLC", "GLE"]},
    {"name": "Honda", "models": ["Civic", "Accord", "CR-V", "HR-V", "Jazz"]},
    {"name": "Toyota", "models": ["Yaris", "Corolla", "Camry", "RAV4", "C-HR", "Prius"]},
    {"name": "Nissan", "models": ["Micra", "Juke", "Qashqai", "X-Trail", "Leaf"]},
    {"name": "Mini", "models": ["Cooper", "Countryman", "Clubman", "Convertible"]},
    {"name": "Tesla", "models": ["Model 3", "Model Y", "Model S", "Model X"]},
    {"name": "Peugeot", "models": ["208", "308", "508", "2008", "3008", "5008"]},
]


def _filters(**defaults):
    cfg = current_app.config
    return CarFilters.from_args(
        request.args,
        default_limit=cfg.get("LISTINGS_DEFAULT_LIMIT", 20),
        max_limit=cfg.get("LISTINGS_MAX_LIMIT", 50),
        **defaults,
    )


def _degradable(read, static):
    """Run a listing read; answer from the static dataset only in degraded mode."""
    try:
        return read(), False
    except StoreUnavailable:
        if not current_app.config.get("STATIC_FALLBACK"):
            raise
        log.warning("store unavailable, serving static listings")
        return static(), True


@bp.get("")
def list_cars():
    filters = _filters()
    page, degraded = _degradable(lambda: listings.search_cars(filters),
                                 lambda: fallback.search_static(filters))
    return api_ok(page.items, pagination=page.pagination, degraded=degraded)


@bp.get("/featured")
def featured():
    page, degraded = _degradable(listings.featured_cars, fallback.featured_static)
    return api_ok(page.items, pagination=page.pagination, degraded=degraded)


@bp.get("/<int:car_id>")
def get_car(car_id):
    return api_ok(listings.get_car(car_id))


@bp.post("")
@jwt_required()
def create_car():
    ident = current_identity()
    car = listings.create_car(ident, json_body())
    return api_ok(car, status=201)


@bp.put("/<int:car_id>")
@jwt_required()
def update_car(car_id):
    ident = current_identity()
    return api_ok(listings.update_car(ident, car_id, json_body()))


@bp.delete("/<int:car_id>")
@jwt_required()
def delete_car(car_id):
    ident = current_identity()
    listings.delete_car(ident, car_id)
    return api_ok({"deleted": True})


@bp.post("/<int:car_id>/save")
@jwt_required()
def toggle_save(car_id):
    ident = current_identity()
    saved = listings.toggle_saved(ident.user_id, car_id)
    return api_ok({"saved": saved},
                  message="Car saved to favorites" if saved else "Car removed from favorites")


@bp.get("/my/listings")
@jwt_required()
def my_listings():
    ident = current_identity()
    filters = _filters(default_status="all")
    filters.user_id = ident.user_id
    page = listings.search_cars(filters)
    return api_ok(page.items, pagination=page.pagination)


@bp.get("/my/saved")
@jwt_required()
def my_saved():
    ident = current_identity()
    return api_ok(listings.saved_cars(ident.user_id))


@bp.get("/data/makes")
def makes():
    return api_ok(POPULAR_CAR_MAKES)
