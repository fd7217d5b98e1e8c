from datetime import datetime
from .extensions import db, bcrypt

CAR_STATUSES = ("active", "sold", "withdrawn", "pending")
MODERATION_STATUSES = ("pending", "approved", "rejected", "flagged")
FUEL_TYPES = ("petrol", "diesel", "electric", "hybrid", "other")
TRANSMISSIONS = ("manual", "automatic", "cvt")
BODY_TYPES = ("hatchback", "saloon", "estate", "suv", "coupe", "convertible", "mpv", "van", "other")
SERVICE_HISTORIES = ("unknown", "full", "partial")
REPORT_TYPES = ("spam", "inappropriate", "fraud", "other")
REPORT_STATUSES = ("open", "investigating", "resolved", "dismissed")


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class User(db.Model, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(180), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40), nullable=True)
    location = db.Column(db.String(120), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)

    is_dealer = db.Column(db.Boolean, nullable=False, default=False)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_suspended = db.Column(db.Boolean, nullable=False, default=False, index=True)
    suspension_reason = db.Column(db.Text, nullable=True)
    suspended_at = db.Column(db.DateTime, nullable=True)
    suspended_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verification_notes = db.Column(db.Text, nullable=True)
    last_login_at = db.Column(db.DateTime, nullable=True)

    cars = db.relationship("Car", back_populates="seller", lazy="dynamic", foreign_keys="Car.user_id")

    def set_password(self, raw):
        self.password_hash = bcrypt.generate_password_hash(raw).decode()

    def check_password(self, raw):
        return bcrypt.check_password_hash(self.password_hash, raw)


class Car(db.Model, TimestampMixin):
    __tablename__ = "cars"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    make = db.Column(db.String(80), nullable=False)
    model = db.Column(db.String(80), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    mileage = db.Column(db.Integer, nullable=True)
    fuel_type = db.Column(db.String(20), nullable=True)
    transmission = db.Column(db.String(20), nullable=True)
    body_type = db.Column(db.String(20), nullable=True)
    engine_size = db.Column(db.String(20), nullable=True)
    doors = db.Column(db.Integer, nullable=True)
    color = db.Column(db.String(60), nullable=True)

    # pence, never floating point
    price = db.Column(db.Integer, nullable=False, index=True)
    is_negotiable = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(db.String(20), nullable=False, default="active", index=True)

    location = db.Column(db.String(120), nullable=False, index=True)
    postcode = db.Column(db.String(12), nullable=True)
    mot_expiry = db.Column(db.Date, nullable=True)
    service_history = db.Column(db.String(20), nullable=False, default="unknown")

    features = db.Column(db.JSON, nullable=True)
    condition_notes = db.Column(db.Text, nullable=True)
    images = db.Column(db.JSON, nullable=True)
    featured_image = db.Column(db.String(500), nullable=True)

    views = db.Column(db.Integer, nullable=False, default=0)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)

    moderation_status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    moderated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    moderated_at = db.Column(db.DateTime, nullable=True)
    moderation_notes = db.Column(db.Text, nullable=True)
    is_flagged = db.Column(db.Boolean, nullable=False, default=False)
    flag_reason = db.Column(db.Text, nullable=True)

    seller = db.relationship("User", back_populates="cars", foreign_keys=[user_id])


class Message(db.Model):
    __tablename__ = "messages"
    id = db.Column(db.Integer, primary_key=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = db.Column(db.String(200), nullable=True)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    car = db.relationship("Car", foreign_keys=[car_id])
    sender = db.relationship("User", foreign_keys=[sender_id])
    recipient = db.relationship("User", foreign_keys=[recipient_id])


class SavedCar(db.Model):
    __tablename__ = "saved_cars"
    __table_args__ = (db.UniqueConstraint("user_id", "car_id", name="uq_saved_cars_user_car"),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = db.Column(db.Integer, db.ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class SearchAlert(db.Model):
    __tablename__ = "search_alerts"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    filters = db.Column(db.JSON, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class AdminLog(db.Model):
    __tablename__ = "admin_logs"
    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action = db.Column(db.String(80), nullable=False, index=True)
    target_type = db.Column(db.String(20), nullable=False)  # user|car|report|system
    target_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    admin = db.relationship("User", foreign_keys=[admin_id])


class Report(db.Model, TimestampMixin):
    __tablename__ = "user_reports"
    id = db.Column(db.Integer, primary_key=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    reported_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reported_car_id = db.Column(db.Integer, db.ForeignKey("cars.id", ondelete="SET NULL"), nullable=True)
    report_type = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="open", index=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    resolution_notes = db.Column(db.Text, nullable=True)

    reporter = db.relationship("User", foreign_keys=[reporter_id])
    reported_user = db.relationship("User", foreign_keys=[reported_user_id])
    reported_car = db.relationship("Car", foreign_keys=[reported_car_id])
    assignee = db.relationship("User", foreign_keys=[assigned_to])


class SiteSetting(db.Model):
    __tablename__ = "site_settings"
    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(80), unique=True, nullable=False)
    setting_value = db.Column(db.Text, nullable=True)
    setting_type = db.Column(db.String(20), nullable=False, default="text")  # text|number|boolean|json
    description = db.Column(db.String(255), nullable=True)
    updated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class SystemStat(db.Model):
    __tablename__ = "system_stats"
    id = db.Column(db.Integer, primary_key=True)
    stat_date = db.Column(db.Date, unique=True, nullable=False)
    total_users = db.Column(db.Integer, nullable=False, default=0)
    new_users_today = db.Column(db.Integer, nullable=False, default=0)
    total_cars = db.Column(db.Integer, nullable=False, default=0)
    new_cars_today = db.Column(db.Integer, nullable=False, default=0)
    active_cars = db.Column(db.Integer, nullable=False, default=0)
    total_messages = db.Column(db.Integer, nullable=False, default=0)
    new_messages_today = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
