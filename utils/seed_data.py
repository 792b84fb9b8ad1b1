from extensions import db
from models import Subject, User


def seed_subjects():
    subjects = [
        {"code": "ENG", "name": "English"},
        {"code": "MATH", "name": "Mathematics"},
        {"code": "SCI", "name": "Science"},
        {"code": "SST", "name": "Social Studies"},
        {"code": "HIN", "name": "Hindi"},
        {"code": "CS", "name": "Computer Science"},
    ]

    for s in subjects:
        existing = Subject.query.filter_by(code=s["code"]).first()
        if not existing:
            db.session.add(Subject(code=s["code"], name=s["name"]))

    db.session.commit()
    print("✅ Subjects seeded")


def seed_admin(username="admin", password="admin123"):
    existing = User.query.filter_by(username=username).first()
    if existing:
        print(f"Admin already exists: {username}")
        return existing

    user = User(username=username, full_name="Administrator", role="admin", is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    print(f"✅ Created admin user: {username}")
    return user


def run_seed():
    seed_subjects()
    seed_admin()
