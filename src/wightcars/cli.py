import click
from .extensions import db
from .models import Car, User
from .settings import ensure_defaults
from .tasks import snapshot_daily_stats

DEMO_USERS = [
    # email, password, full_name, phone, location, is_dealer, is_verified, is_admin
    ("john.smith@wightcars.com", "admin123", "John Smith", "01983 123456", "Newport, Isle of Wight", False, True, True),
    ("sarah.jones@dealer.com", "seller123", "Sarah Jones", "01983 234567", "Cowes, Isle of Wight", True, True, False),
    ("mike.wilson@email.com", "buyer123", "Mike Wilson", "01983 345678", "Ryde, Isle of Wight", False, False, False),
]

DEMO_CARS = [
    # owner email, title, make, model, year, mileage, fuel, transmission, body, price (pence), location, features
    ("john.smith@wightcars.com", "2020 Ford Fiesta ST-Line - Low Mileage!", "Ford", "Fiesta", 2020, 28500,
     "petrol", "manual", "hatchback", 1299500, "Newport, Isle of Wight",
     ["Air Conditioning", "Bluetooth", "DAB Radio", "Cruise Control"]),
    ("sarah.jones@dealer.com", "2018 BMW 320d M Sport", "BMW", "3 Series", 2018, 45000,
     "diesel", "automatic", "saloon", 1895000, "Cowes, Isle of Wight",
     ["Leather Seats", "Navigation", "Heated Seats"]),
    ("john.smith@wightcars.com", "2019 Honda Civic Type R - Track Ready!", "Honda", "Civic Type R", 2019, 15200,
     "petrol", "manual", "hatchback", 3250000, "Newport, Isle of Wight",
     ["VTEC Turbo", "Brembo Brakes", "Recaro Seats"]),
    ("mike.wilson@email.com", "2017 Volkswagen Golf GTI - Island Owned", "Volkswagen", "Golf", 2017, 52000,
     "petrol", "manual", "hatchback", 1675000, "Ryde, Isle of Wight",
     ["GTI Interior", "Sports Suspension"]),
    ("sarah.jones@dealer.com", "2021 Tesla Model 3 - Perfect for Island Life", "Tesla", "Model 3", 2021, 12000,
     "electric", "automatic", "saloon", 3850000, "Cowes, Isle of Wight",
     ["Autopilot", "Supercharging", "Glass Roof"]),
]


def register_cli(app):
    @app.cli.command("seed")
    def seed():
        """Load demo users (one admin), listings and default site settings."""
        with app.app_context():
            ensure_defaults()
            users = {}
            for email, password, name, phone, location, dealer, verified, admin in DEMO_USERS:
                u = User.query.filter_by(email=email).first()
                if not u:
                    u = User(email=email, full_name=name, phone=phone, location=location,
                             is_dealer=dealer, is_verified=verified, is_admin=admin)
                    u.set_password(password)
                    db.session.add(u)
                    db.session.flush()
                users[email] = u

            for owner, title, make, model, year, mileage, fuel, gearbox, body, price, location, features in DEMO_CARS:
                if Car.query.filter_by(title=title).first():
                    continue
                db.session.add(Car(
                    user_id=users[owner].id, title=title, make=make, model=model, year=year,
                    mileage=mileage, fuel_type=fuel, transmission=gearbox, body_type=body,
                    price=price, location=location, features=features, images=[],
                    moderation_status="approved",
                ))
            db.session.commit()
            click.echo("Seed complete.")

    @app.cli.command("snapshot-stats")
    def snapshot_stats():
        """Write today's system_stats row now."""
        counters = snapshot_daily_stats(app)
        if counters is None:
            raise click.ClickException("Snapshot skipped: counter query failed")
        click.echo(", ".join(f"{k}={v}" for k, v in counters.items()))
