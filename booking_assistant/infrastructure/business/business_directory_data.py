DEMO_BUSINESSES: dict[str, dict] = {
    "demo-plumbing": {
        "name": "Rapid Flow Plumbing",
        "email": "bookings@rapidflow.example",
        "phone": "+1 555 010 2000",
        "category": "Home Services",
        "subcategories": ["Plumbing"],
        "services": [
            {"name": "Drain Cleaning"},
            {"name": "Leak Repair"},
            {"name": "Water Heater Installation"},
        ],
        "hours": {
            "monday": {"open": "09:00", "close": "17:00", "isOpen": True},
            "tuesday": {"open": "09:00", "close": "17:00", "isOpen": True},
            "wednesday": {"open": "09:00", "close": "17:00", "isOpen": True},
            "thursday": {"open": "09:00", "close": "17:00", "isOpen": True},
            "friday": {"open": "09:00", "close": "15:00", "isOpen": True},
            "saturday": {"open": "10:00", "close": "14:00", "isOpen": True},
            "sunday": {"isOpen": False},
        },
    },
    "demo-salon": {
        "name": "Studio Nine Hair",
        "email": "hello@studionine.example",
        "category": "Beauty",
        "subcategories": ["Hair Salon"],
        "services": ["Haircut", "Color", "Blowout"],
        "hours": "{\"tuesday\": {\"open\": \"10:00\", \"close\": \"18:00\", \"isOpen\": true}, "
        "\"wednesday\": {\"open\": \"10:00\", \"close\": \"18:00\", \"isOpen\": true}, "
        "\"thursday\": {\"open\": \"10:00\", \"close\": \"20:00\", \"isOpen\": true}, "
        "\"friday\": {\"open\": \"10:00\", \"close\": \"20:00\", \"isOpen\": true}, "
        "\"saturday\": {\"open\": \"09:00\", \"close\": \"17:00\", \"isOpen\": true}}",
    },
}
