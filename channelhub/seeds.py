"""
Demo Data

A small data set for local runs: two professors, two students, three
channels and one announcement. Student one starts subscribed to the first
channel and following its professor.
"""

from uuid import UUID

import structlog

from channelhub.domain.channels import ContentType
from channelhub.platform import Platform

logger = structlog.get_logger(__name__)

DEMO_CREDENTIAL = "demo"


async def seed_demo_data(platform: Platform) -> dict[str, UUID]:
    """
    Load the demo data set into a platform.

    Returns:
        Mapping of demo keys (``prof1``, ``student1``, ``ch1`` ...) to ids
    """
    identity = platform.identity
    language = platform.settings.default_language

    prof1 = await identity.create_user(
        {
            "role": "professor",
            "name": "Ahmed Djamel",
            "email": "ahmed@example.com",
            "university": "University of Algiers 1",
            "faculty": "Computer Science",
            "department": "Artificial Intelligence",
            "phone_number": "0555123456",
            "language": language,
        },
        credential=DEMO_CREDENTIAL,
    )
    prof2 = await identity.create_user(
        {
            "role": "professor",
            "name": "Layla Benali",
            "email": "layla@example.com",
            "university": "University of Oran 1",
            "faculty": "Law",
            "department": "Public Law",
            "phone_number": "0555654321",
            "language": "fr",
        },
        credential=DEMO_CREDENTIAL,
    )
    student1 = await identity.create_user(
        {
            "role": "student",
            "name": "Fatima Zahra",
            "email": "fatima@example.com",
            "university": "University of Algiers 2",
            "faculty": "Medicine",
            "department": "General Medicine",
            "language": language,
        },
        credential=DEMO_CREDENTIAL,
    )
    student2 = await identity.create_user(
        {
            "role": "student",
            "name": "Youssef Mansour",
            "email": "youssef@example.com",
            "university": "University of Constantine 1",
            "faculty": "Computer Science",
            "department": "Software Engineering",
            "language": "fr",
        },
        credential=DEMO_CREDENTIAL,
    )

    ch1 = await platform.channels.create_channel(
        prof1.id,
        {
            "name": "Introduction to Artificial Intelligence",
            "department": "Artificial Intelligence",
            "description": "Foundations of AI and its practical applications.",
            "meeting_link": "https://meet.google.com/abc-xyz",
        },
    )
    await platform.channels.add_content(
        ch1.id,
        {
            "type": ContentType.DOCUMENT,
            "title": "Lecture 1: Introduction to AI",
            "url": "https://example.com/lecture-1.pdf",
        },
    )
    await platform.channels.add_content(
        ch1.id,
        {
            "type": ContentType.VIDEO,
            "title": "Concept walkthrough",
            "url": "https://example.com/walkthrough.mp4",
        },
    )
    ch2 = await platform.channels.create_channel(
        prof1.id,
        {
            "name": "Python Programming for Beginners",
            "department": "Software Engineering",
            "description": "Learn the basics of Python and build simple applications.",
        },
    )
    ch3 = await platform.channels.create_channel(
        prof2.id,
        {
            "name": "Principles of Civil Law",
            "department": "Public Law",
            "description": "A complete walk through the principles of Algerian civil law.",
            "meeting_link": "https://meet.google.com/def-uvw",
        },
    )

    await platform.subscriptions.subscribe(ch1.id, student1.id)
    await platform.subscriptions.follow(prof1.id, student1.id)

    await platform.announcements.publish(
        prof1.id,
        "Lecture reminder",
        "This week's AI lecture takes place on Wednesday at 10am on Google Meet.",
    )

    ids = {
        "prof1": prof1.id,
        "prof2": prof2.id,
        "student1": student1.id,
        "student2": student2.id,
        "ch1": ch1.id,
        "ch2": ch2.id,
        "ch3": ch3.id,
    }
    logger.info(
        "Demo data seeded",
        users=identity.count(),
        channels=len(platform.channels.channel_ids()),
    )
    return ids
