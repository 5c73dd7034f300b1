"""
Seed Demo Data

Creates the accounts and service catalog of the Badung deployment:
- admin@badung.go.id / admin123         -> Admin
- operator@badung.go.id / operator123   -> Admin (service operator)
- user1..user5@test.com / password      -> Citizens
- the six public services with their required documents

Optionally adds random complaints with status history for demos:

Run with:
    python seed_demo_data.py
    python seed_demo_data.py --with-complaints 50
    python seed_demo_data.py list
"""
import argparse
import asyncio
import random
import sys
import os
from datetime import datetime, timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from faker import Faker
from sqlalchemy import select, func

from app.core.database import AsyncSessionLocal, init_db
from app.core.security import get_password_hash
from app.models.user import User, UserRole
from app.models.service import Service
from app.models.complaint import Complaint, ComplaintStatus, ComplaintStatusHistory
from app.services.complaint_service import make_registration_number, INITIAL_STATUS_NOTE


DEMO_USERS = [
    {"name": "Administrator", "email": "admin@badung.go.id", "password": "admin123",
     "role": UserRole.ADMIN, "phone": "081234567890"},
    {"name": "Operator Layanan", "email": "operator@badung.go.id", "password": "operator123",
     "role": UserRole.ADMIN, "phone": "081234567891"},
] + [
    {"name": f"Warga Demo {i}", "email": f"user{i}@test.com", "password": "password",
     "role": UserRole.USER, "phone": None}
    for i in range(1, 6)
]

SERVICES = [
    {
        "name": "Permohonan KTP",
        "description": "Layanan pembuatan atau perpanjangan Kartu Tanda Penduduk",
        "category": "Kependudukan",
        "required_documents": [
            "KK (Kartu Keluarga)",
            "Akta Kelahiran",
            "Ijazah terakhir",
            "Surat Nikah (jika sudah menikah)",
        ],
    },
    {
        "name": "Perizinan Usaha",
        "description": "Layanan pengurusan izin usaha mikro, kecil, dan menengah",
        "category": "Perizinan",
        "required_documents": [
            "KTP Pemilik Usaha",
            "KK (Kartu Keluarga)",
            "Surat Domisili Usaha",
            "Denah Lokasi Usaha",
            "NPWP",
        ],
    },
    {
        "name": "Surat Keterangan Domisili",
        "description": "Layanan penerbitan surat keterangan domisili",
        "category": "Kependudukan",
        "required_documents": ["KTP", "KK (Kartu Keluarga)", "Surat Pengantar RT/RW"],
    },
    {
        "name": "Pengaduan Infrastruktur",
        "description": "Layanan pengaduan terkait infrastruktur jalan, jembatan, dan fasilitas umum",
        "category": "Pengaduan",
        "required_documents": [
            "KTP Pelapor",
            "Foto Kondisi Infrastruktur",
            "Surat Pengantar RT/RW (opsional)",
        ],
    },
    {
        "name": "Izin Mendirikan Bangunan (IMB)",
        "description": "Layanan pengurusan izin mendirikan bangunan",
        "category": "Perizinan",
        "required_documents": [
            "KTP Pemohon",
            "Sertifikat Tanah",
            "Gambar Rencana Bangunan",
            "Surat Pernyataan Tidak Keberatan Tetangga",
        ],
    },
    {
        "name": "Bantuan Sosial",
        "description": "Layanan permohonan bantuan sosial untuk masyarakat kurang mampu",
        "category": "Sosial",
        "required_documents": [
            "KTP",
            "KK (Kartu Keluarga)",
            "Surat Keterangan Tidak Mampu dari Kelurahan",
            "Foto Kondisi Rumah",
        ],
    },
]


async def seed_users(db) -> None:
    created_count = 0
    updated_count = 0

    for user_data in DEMO_USERS:
        result = await db.execute(select(User).where(User.email == user_data["email"]))
        existing_user = result.scalar_one_or_none()

        if existing_user:
            existing_user.name = user_data["name"]
            existing_user.hashed_password = get_password_hash(user_data["password"])
            existing_user.role = user_data["role"]
            existing_user.is_active = True
            updated_count += 1
            print(f"  Updated: {user_data['email']} ({user_data['role'].value})")
        else:
            db.add(User(
                name=user_data["name"],
                email=user_data["email"],
                hashed_password=get_password_hash(user_data["password"]),
                role=user_data["role"],
                phone=user_data["phone"],
                is_active=True,
            ))
            created_count += 1
            print(f"  Created: {user_data['email']} ({user_data['role'].value})")

    await db.commit()
    print(f"Users: {created_count} created, {updated_count} updated")


async def seed_services(db) -> None:
    created_count = 0
    for service_data in SERVICES:
        result = await db.execute(select(Service).where(Service.name == service_data["name"]))
        service = result.scalar_one_or_none()
        if service:
            service.description = service_data["description"]
            service.category = service_data["category"]
            service.required_documents = service_data["required_documents"]
            service.is_active = True
        else:
            db.add(Service(is_active=True, **service_data))
            created_count += 1
            print(f"  Created service: {service_data['name']}")

    await db.commit()
    print(f"Services: {created_count} created, {len(SERVICES) - created_count} refreshed")


def status_change_time(created_at: datetime, now: datetime, delay: timedelta) -> datetime:
    """
    When the admin acted on a seeded complaint: capped at now, but always
    strictly after submission so the newest history entry is unambiguous.
    """
    changed_at = min(created_at + delay, now)
    if changed_at <= created_at:
        changed_at = created_at + timedelta(seconds=1)
    return changed_at


async def seed_complaints(db, count: int) -> None:
    """Random complaints spread over the last six months"""
    faker = Faker("id_ID")

    citizens = (await db.execute(select(User).where(User.role == UserRole.USER))).scalars().all()
    admin = (await db.execute(select(User).where(User.role == UserRole.ADMIN))).scalars().first()
    services = (await db.execute(select(Service))).scalars().all()

    if not citizens or not services or not admin:
        print("No users or services found. Seed users and services first.")
        return

    now = datetime.utcnow()
    for _ in range(count):
        owner = random.choice(citizens)
        created_at = now - timedelta(days=random.randint(0, 180), minutes=random.randint(0, 1440))
        complaint = Complaint(
            registration_number=make_registration_number(created_at),
            user_id=owner.id,
            service_id=random.choice(services).id,
            applicant_name=faker.name(),
            applicant_nik=faker.numerify("################"),
            applicant_address=faker.address(),
            applicant_phone=faker.numerify("08##########"),
            applicant_job=faker.job()[:255],
            applicant_birth_date=faker.date_of_birth(minimum_age=20, maximum_age=70),
            description=faker.paragraph(nb_sentences=3),
            status=ComplaintStatus.PENDING,
            created_at=created_at,
        )
        db.add(complaint)
        await db.flush()

        db.add(ComplaintStatusHistory(
            complaint_id=complaint.id,
            user_id=owner.id,
            status=ComplaintStatus.PENDING,
            notes=INITIAL_STATUS_NOTE,
            created_at=created_at,
        ))

        # Some complaints have moved on since submission
        if random.random() < 0.6:
            new_status = random.choice([s for s in ComplaintStatus if s != ComplaintStatus.PENDING])
            changed_at = status_change_time(created_at, now, timedelta(hours=random.randint(1, 72)))
            complaint.status = new_status
            complaint.notes = faker.sentence()
            db.add(ComplaintStatusHistory(
                complaint_id=complaint.id,
                user_id=admin.id,
                status=new_status,
                notes=complaint.notes,
                created_at=changed_at,
            ))

    await db.commit()
    print(f"Complaints: {count} created")


async def seed_demo_data(complaints: int = 0):
    print("=" * 50)
    print("Seeding Demo Data...")
    print("=" * 50)

    await init_db()

    async with AsyncSessionLocal() as db:
        await seed_users(db)
        await seed_services(db)
        if complaints:
            await seed_complaints(db, complaints)

    print("=" * 50)
    print("\nDemo Login Credentials:")
    print("-" * 50)
    print("| Role     | Email                  | Password    |")
    print("-" * 50)
    print("| Admin    | admin@badung.go.id     | admin123    |")
    print("| Admin    | operator@badung.go.id  | operator123 |")
    print("| Citizen  | user1@test.com         | password    |")
    print("-" * 50)


async def list_demo_data():
    await init_db()

    async with AsyncSessionLocal() as db:
        users = (await db.execute(select(User).order_by(User.email))).scalars().all()
        print(f"\n{'Email':<30} {'Role':<8} {'Active':<8}")
        print("-" * 50)
        for user in users:
            print(f"{user.email:<30} {user.role.value:<8} {str(user.is_active):<8}")

        services = (await db.execute(select(Service).order_by(Service.name))).scalars().all()
        print(f"\n{'Service':<35} {'Category':<15} {'Active':<8}")
        print("-" * 60)
        for service in services:
            print(f"{service.name:<35} {(service.category or '-'):<15} {str(service.is_active):<8}")

        total = await db.scalar(select(func.count(Complaint.id)))
        print(f"\nComplaints: {total}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the complaint portal with demo data")
    parser.add_argument("command", nargs="?", default="seed", choices=["seed", "list"])
    parser.add_argument("--with-complaints", type=int, default=0, metavar="N",
                        help="also create N random complaints")
    args = parser.parse_args()

    if args.command == "list":
        asyncio.run(list_demo_data())
    else:
        asyncio.run(seed_demo_data(args.with_complaints))
