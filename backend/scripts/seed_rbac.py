"""
Seed default permissions and roles.

Run once after the initial migration. Entries that already exist are left
untouched, so the script can be re-run safely.

Usage:
    python -m scripts.seed_rbac
"""
import asyncio

from rbac_registry.database import AsyncSessionLocal
from rbac_registry.dependencies import build_services


DEFAULT_PERMISSIONS = [
    "CREATE",
    "READ",
    "UPDATE",
    "DELETE",
]

DEFAULT_ROLES = {
    "ADMIN": ["CREATE", "READ", "UPDATE", "DELETE"],
    "EDITOR": ["READ", "UPDATE"],
    "VIEWER": ["READ"],
}


async def seed_rbac() -> None:
    async with AsyncSessionLocal() as session:
        services = build_services(session)

        print("Seeding permissions...")
        for name in DEFAULT_PERMISSIONS:
            if await services.permissions.lookup_exact(name) is not None:
                print(f"  Permission '{name}' already exists, skipping...")
                continue
            await services.permissions.create(name)
            print(f"  ✓ Created permission: {name}")

        print("\nSeeding roles...")
        for name, permission_names in DEFAULT_ROLES.items():
            if await services.roles.lookup_exact(name) is not None:
                print(f"  Role '{name}' already exists, skipping...")
                continue
            role = await services.roles.create(name, permission_names)
            print(f"  ✓ Created role: {name} ({len(role.permissions)} permissions)")

        print("\nSeed complete.")


if __name__ == "__main__":
    asyncio.run(seed_rbac())
