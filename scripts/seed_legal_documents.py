"""Seed the initial active terms of service and privacy policy."""
import asyncio
import sys
sys.path.insert(0, ".")

from sqlalchemy import select
from app.database import async_session_factory
from app.models.compliance import PrivacyPolicy, TermsOfService


INITIAL_VERSION = "1.0"

TERMS_CONTENT = (
    "By creating an account you confirm that you are at least 18 years of age. "
    "Companions are independent adults advertising their own time and company; "
    "the platform does not arrange, endorse or take part in any booking. "
    "Accounts that post misleading profiles, impersonate another person or "
    "harass other members will be suspended. Paid subscriptions and featured "
    "listings renew only when auto-renew is enabled and can be canceled at any time."
)

PRIVACY_CONTENT = (
    "We store the details you provide at registration, your profile content and "
    "the documents you submit for identity verification. Verification documents "
    "are reviewed by our moderation team and are never shown to other members. "
    "Messages are visible only to the two participants of a conversation. "
    "We record the IP address used when you accept these policies for compliance "
    "purposes. You may request deletion of your account at any time."
)

DOCUMENTS = [
    (TermsOfService, TERMS_CONTENT, "terms of service"),
    (PrivacyPolicy, PRIVACY_CONTENT, "privacy policy"),
]


async def seed():
    async with async_session_factory() as session:
        for model, content, label in DOCUMENTS:
            existing = await session.execute(
                select(model).where(model.version == INITIAL_VERSION)
            )
            if existing.scalar_one_or_none() is None:
                session.add(model(version=INITIAL_VERSION, content=content, is_active=True))
                print(f"  Seeded {label} v{INITIAL_VERSION}")
            else:
                print(f"  {label.capitalize()} v{INITIAL_VERSION} already exists, skipping.")
        await session.commit()
    print("Done seeding legal documents.")


if __name__ == "__main__":
    asyncio.run(seed())
