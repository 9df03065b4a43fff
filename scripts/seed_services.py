"""Insert the default service categories if they are missing."""
from serviceconnect.core.database import SessionLocal
from serviceconnect.models import Service


DEFAULT_SERVICES = [
    {"name": "Plumbing", "description": "Leaks, fittings, drainage and water tank work."},
    {"name": "Electrical", "description": "Wiring, fixtures, switchboards and appliance points."},
    {"name": "Carpentry", "description": "Furniture repair, doors, shelving and woodwork."},
    {"name": "Cleaning", "description": "Home and office deep cleaning."},
    {"name": "Appliance Repair", "description": "AC, refrigerator, washing machine and microwave repair."},
    {"name": "Painting", "description": "Interior and exterior painting."},
]


def main():
    db = SessionLocal()
    try:
        added = 0
        for item in DEFAULT_SERVICES:
            existing = db.query(Service).filter(Service.name == item["name"]).first()
            if not existing:
                db.add(Service(**item))
                added += 1
        db.commit()
        print(f"Seeded {added} service(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
