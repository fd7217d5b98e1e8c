# wightcars/fallback.py
from .filters import CarFilters, Page


def _car(id, user_id, title, make, model, year, mileage, fuel_type, transmission, body_type,
         price, location, views, is_featured, created_at, seller, **extra):
    data = {
        "id": id,
        "user_id": user_id,
        "title": title,
        "description": None,
        "make": make,
        "model": model,
        "year": year,
        "mileage": mileage,
        "fuel_type": fuel_type,
        "transmission": transmission,
        "body_type": body_type,
        "engine_size": None,
        "doors": None,
        "color": None,
        "price": price,
        "is_negotiable": True,
        "status": "active",
        "location": location,
        "postcode": None,
        "mot_expiry": None,
        "service_history": "full",
        "features": [],
        "condition_notes": None,
        "images": [],
        "featured_image": None,
        "views": views,
        "is_featured": is_featured,
        "moderation_status": "approved",
        "created_at": created_at,
        "updated_at": created_at,
        "seller": seller,
    }
    data.update(extra)
    return data


_JOHN = {"id": 1, "full_name": "John Smith", "location": "Newport, Isle of Wight",
         "is_dealer": False, "is_verified": True}
_SARAH = {"id": 2, "full_name": "Sarah Jones", "location": "Cowes, Isle of Wight",
          "is_dealer": True, "is_verified": True}
_MIKE = {"id": 3, "full_name": "Mike Wilson", "location": "Ryde, Isle of Wight",
         "is_dealer": False, "is_verified": False}
_EMMA = {"id": 4, "full_name": "Emma Brown", "location": "Sandown, Isle of Wight",
         "is_dealer": False, "is_verified": True}

STATIC_CARS = [
    _car(1, 1, "2020 Ford Fiesta ST-Line - Low Mileage!", "Ford", "Fiesta", 2020, 28500,
         "petrol", "manual", "hatchback", 1299500, "Newport, Isle of Wight", 45, False,
         "2024-08-15T10:00:00Z", _JOHN, engine_size="1.0L", doors=5, color="Magnetic Grey",
         features=["Air Conditioning", "Bluetooth", "DAB Radio", "Cruise Control", "Alloy Wheels"]),
    _car(2, 2, "2018 BMW 320d M Sport - Isle of Wight Delivery Available", "BMW", "3 Series",
         2018, 45000, "diesel", "automatic", "saloon", 1895000, "Cowes, Isle of Wight", 67, True,
         "2024-08-10T14:30:00Z", _SARAH, engine_size="2.0L", doors=4, color="Alpine White",
         features=["Leather Seats", "Navigation", "Heated Seats", "Parking Sensors"]),
    _car(3, 1, "2019 Honda Civic Type R - Track Ready!", "Honda", "Civic Type R", 2019, 15200,
         "petrol", "manual", "hatchback", 3250000, "Newport, Isle of Wight", 123, True,
         "2024-08-05T09:15:00Z", _JOHN, is_negotiable=False, engine_size="2.0L", doors=5,
         features=["VTEC Turbo", "Brembo Brakes", "Recaro Seats"]),
    _car(4, 3, "2017 Volkswagen Golf GTI - Island Owned", "Volkswagen", "Golf", 2017, 52000,
         "petrol", "manual", "hatchback", 1675000, "Ryde, Isle of Wight", 89, False,
         "2024-08-12T16:45:00Z", _MIKE, service_history="partial", color="Tornado Red"),
    _car(5, 2, "2021 Tesla Model 3 - Perfect for Island Life", "Tesla", "Model 3", 2021, 12000,
         "electric", "automatic", "saloon", 3850000, "Cowes, Isle of Wight", 156, True,
         "2024-08-08T11:20:00Z", _SARAH, is_negotiable=False, engine_size="Electric", doors=4,
         features=["Autopilot", "Supercharging", "Glass Roof"]),
    _car(6, 4, "2022 Kia Sportage GT-Line S - Hybrid Efficiency", "Kia", "Sportage", 2022, 8500,
         "hybrid", "automatic", "suv", 2899500, "Sandown, Isle of Wight", 234, True,
         "2024-08-01T08:00:00Z", _EMMA, engine_size="1.6L", doors=5,
         features=["Panoramic Sunroof", "Wireless Charging", "Lane Keep Assist"]),
]


def search_static(filters: CarFilters) -> Page:
    matched = filters.sort_rows([c for c in STATIC_CARS if filters.matches(c)])
    window = matched[filters.offset:filters.offset + filters.limit]
    return Page(items=[dict(c) for c in window], page=filters.page,
                limit=filters.limit, total=len(matched))


def featured_static(limit=6):
    rows = sorted(STATIC_CARS, key=lambda c: (c["is_featured"], c["created_at"]), reverse=True)[:limit]
    return Page(items=[dict(c) for c in rows], page=1, limit=limit, total=len(rows))
