"""Seed the employee directory with default users and sample employees.

Clears the ``users`` and ``employees`` collections, then inserts:
- admin / admin123 (admin role)
- employee / emp123 (employee role)
- a fixed set of sample employees
- optionally, N generated employees (``--fake N``)

Usage:
    python -m employee_api.src.scripts.seed [--fake 100] [--seed 42]
"""

import argparse
import asyncio
import random
import sys
from typing import Any, Dict, List, Optional

import structlog
from faker import Faker

from employee_api.src.config import get_settings
from employee_api.src.database import Database
from employee_api.src.errors import AppError
from employee_api.src.models.auth import Role
from employee_api.src.models.employee import EmployeeInput
from employee_api.src.repositories.employee_repo import EmployeeRepository
from employee_api.src.repositories.user_repo import UserRepository
from employee_api.src.services.auth_service import AuthService
from employee_api.src.utils.datetime_utils import utcnow
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)

DEFAULT_USERS = [
    {"username": "admin", "email": "admin@example.com", "password": "admin123", "role": Role.ADMIN},
    {"username": "employee", "email": "employee@example.com", "password": "emp123", "role": Role.EMPLOYEE},
]

SAMPLE_EMPLOYEES: List[Dict[str, Any]] = [
    {"name": "John Smith", "age": 32, "class": "Engineering",
     "subjects": ["Mathematics", "Physics", "Computer Science"], "attendance": 95,
     "email": "john.smith@example.com", "department": "IT", "position": "Senior Developer", "salary": 95000},
    {"name": "Sarah Johnson", "age": 28, "class": "Marketing",
     "subjects": ["Business", "Communication", "Design"], "attendance": 88,
     "email": "sarah.johnson@example.com", "department": "Marketing", "position": "Marketing Manager", "salary": 75000},
    {"name": "Michael Chen", "age": 35, "class": "Finance",
     "subjects": ["Accounting", "Economics", "Statistics"], "attendance": 92,
     "email": "michael.chen@example.com", "department": "Finance", "position": "Financial Analyst", "salary": 82000},
    {"name": "Emily Davis", "age": 26, "class": "HR",
     "subjects": ["Psychology", "Management", "Communication"], "attendance": 90,
     "email": "emily.davis@example.com", "department": "Human Resources", "position": "HR Specialist", "salary": 65000},
    {"name": "David Wilson", "age": 40, "class": "Engineering",
     "subjects": ["Mathematics", "Physics", "Engineering"], "attendance": 98,
     "email": "david.wilson@example.com", "department": "IT", "position": "Tech Lead", "salary": 120000},
    {"name": "Lisa Anderson", "age": 29, "class": "Sales",
     "subjects": ["Business", "Communication", "Negotiation"], "attendance": 85,
     "email": "lisa.anderson@example.com", "department": "Sales", "position": "Sales Manager", "salary": 70000},
    {"name": "Robert Brown", "age": 33, "class": "Operations",
     "subjects": ["Management", "Logistics", "Operations"], "attendance": 87,
     "email": "robert.brown@example.com", "department": "Operations", "position": "Operations Manager", "salary": 88000},
    {"name": "Jennifer Martinez", "age": 27, "class": "Design",
     "subjects": ["Design", "Art", "User Experience"], "attendance": 91,
     "email": "jennifer.martinez@example.com", "department": "Design", "position": "UI/UX Designer", "salary": 72000},
    {"name": "James Taylor", "age": 31, "class": "Engineering",
     "subjects": ["Computer Science", "Software Engineering", "Algorithms"], "attendance": 94,
     "email": "james.taylor@example.com", "department": "IT", "position": "Software Engineer", "salary": 85000},
    {"name": "Amanda White", "age": 25, "class": "Customer Service",
     "subjects": ["Communication", "Psychology", "Service"], "attendance": 89,
     "email": "amanda.white@example.com", "department": "Customer Service",
     "position": "Customer Support Specialist", "salary": 55000},
    {"name": "Christopher Lee", "age": 36, "class": "Engineering",
     "subjects": ["Mathematics", "Physics", "Engineering Design"], "attendance": 96,
     "email": "christopher.lee@example.com", "department": "IT",
     "position": "Senior Software Architect", "salary": 135000},
    {"name": "Maria Garcia", "age": 30, "class": "Marketing",
     "subjects": ["Digital Marketing", "Analytics", "Content Strategy"], "attendance": 93,
     "email": "maria.garcia@example.com", "department": "Marketing",
     "position": "Digital Marketing Manager", "salary": 88000},
    {"name": "Thomas Anderson", "age": 38, "class": "Finance",
     "subjects": ["Financial Planning", "Risk Management", "Investment"], "attendance": 91,
     "email": "thomas.anderson@example.com", "department": "Finance",
     "position": "Senior Financial Analyst", "salary": 95000},
    {"name": "Jessica Kim", "age": 24, "class": "Design",
     "subjects": ["Graphic Design", "Branding", "Visual Communication"], "attendance": 86,
     "email": "jessica.kim@example.com", "department": "Design", "position": "Graphic Designer", "salary": 60000},
    {"name": "Daniel Rodriguez", "age": 34, "class": "Sales",
     "subjects": ["Sales Strategy", "Customer Relations", "Negotiation"], "attendance": 92,
     "email": "daniel.rodriguez@example.com", "department": "Sales",
     "position": "Senior Sales Executive", "salary": 92000},
    {"name": "Sophia Williams", "age": 29, "class": "HR",
     "subjects": ["Talent Acquisition", "Employee Relations", "Training"], "attendance": 88,
     "email": "sophia.williams@example.com", "department": "Human Resources", "position": "HR Manager", "salary": 78000},
    {"name": "Ryan Murphy", "age": 27, "class": "Operations",
     "subjects": ["Supply Chain", "Process Optimization", "Quality Control"], "attendance": 90,
     "email": "ryan.murphy@example.com", "department": "Operations", "position": "Operations Analyst", "salary": 68000},
    {"name": "Olivia Thompson", "age": 31, "class": "Customer Service",
     "subjects": ["Customer Support", "Problem Solving", "Communication"], "attendance": 87,
     "email": "olivia.thompson@example.com", "department": "Customer Service",
     "position": "Customer Service Manager", "salary": 72000},
    {"name": "William Davis", "age": 39, "class": "Engineering",
     "subjects": ["System Architecture", "Cloud Computing", "DevOps"], "attendance": 97,
     "email": "william.davis@example.com", "department": "IT", "position": "DevOps Engineer", "salary": 110000},
    {"name": "Emma Wilson", "age": 26, "class": "Marketing",
     "subjects": ["Social Media", "Content Creation", "SEO"], "attendance": 84,
     "email": "emma.wilson@example.com", "department": "Marketing",
     "position": "Social Media Specialist", "salary": 58000},
    {"name": "Alexander Brown", "age": 33, "class": "Finance",
     "subjects": ["Accounting", "Tax Planning", "Auditing"], "attendance": 94,
     "email": "alexander.brown@example.com", "department": "Finance", "position": "Accountant", "salary": 70000},
]

DEPARTMENTS = {
    "IT": ("Engineering", ["Software Engineer", "QA Engineer", "Site Reliability Engineer"]),
    "Marketing": ("Marketing", ["Marketing Specialist", "Brand Manager", "Content Strategist"]),
    "Finance": ("Finance", ["Financial Analyst", "Accountant", "Controller"]),
    "Human Resources": ("HR", ["Recruiter", "HR Specialist", "HR Manager"]),
    "Sales": ("Sales", ["Account Executive", "Sales Manager", "Sales Engineer"]),
    "Operations": ("Operations", ["Operations Analyst", "Logistics Coordinator"]),
    "Design": ("Design", ["Product Designer", "Graphic Designer"]),
}


def generate_employee_document(fake: Faker, rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """Generate a realistic employee record.

    Args:
        fake: Faker instance
        rng: Random source (module random when omitted)

    Returns:
        Employee fields using GraphQL names
    """
    rng = rng or random
    department = rng.choice(sorted(DEPARTMENTS))
    class_name, positions = DEPARTMENTS[department]
    return {
        "name": fake.name(),
        "age": rng.randint(21, 65),
        "class": class_name,
        "subjects": [fake.word().title() for _ in range(rng.randint(1, 4))],
        "attendance": round(rng.uniform(70, 100), 1),
        "email": fake.unique.email(),
        "department": department,
        "position": rng.choice(positions),
        "salary": float(rng.randrange(40000, 160000, 1000)),
    }


def to_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate employee fields and add timestamps."""
    document = EmployeeInput.model_validate(data).to_document()
    now = utcnow()
    document.update(join_date=now, created_at=now, updated_at=now)
    return document


async def seed(fake_count: int = 0, random_seed: Optional[int] = None) -> Dict[str, int]:
    """
    Clear and repopulate the database.

    Args:
        fake_count: Number of generated employees to add
        random_seed: Seed for reproducible generated data

    Returns:
        Counts of inserted users and employees
    """
    settings = get_settings()
    database = Database(settings)
    await database.connect()

    try:
        users = UserRepository(database.db)
        employees = EmployeeRepository(database.db)
        auth_service = AuthService(users, settings=settings)

        removed_employees = await employees.delete_all()
        removed_users = await users.delete_all()
        logger.info("seed_cleared", employees=removed_employees, users=removed_users)

        await users.ensure_indexes()
        await employees.ensure_indexes()

        for user in DEFAULT_USERS:
            now = utcnow()
            await users.create_user({
                "username": user["username"],
                "email": user["email"],
                "password_hash": auth_service.hash_password(user["password"]),
                "role": user["role"].value,
                "created_at": now,
                "updated_at": now,
            })

        records = list(SAMPLE_EMPLOYEES)
        if fake_count:
            fake = Faker()
            rng = random.Random(random_seed)
            if random_seed is not None:
                Faker.seed(random_seed)
            records.extend(generate_employee_document(fake, rng) for _ in range(fake_count))

        for record in records:
            await employees.create(to_document(record))

        counts = {"users": len(DEFAULT_USERS), "employees": len(records)}
        logger.info("seed_completed", **counts)
        return counts
    finally:
        await database.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the employee directory database")
    parser.add_argument("--fake", type=int, default=0, metavar="N", help="also insert N generated employees")
    parser.add_argument("--seed", type=int, default=None, help="random seed for generated employees")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        app_name=settings.app_name,
        environment=settings.environment,
        component="seed",
    )

    try:
        counts = asyncio.run(seed(fake_count=args.fake, random_seed=args.seed))
    except AppError as e:
        logger.error("seed_failed", code=e.code, error=e.message)
        return 1

    print(f"Seeded {counts['users']} users and {counts['employees']} employees.")
    print("Default credentials:")
    for user in DEFAULT_USERS:
        print(f"  {user['role'].value}: {user['username']} / {user['password']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
