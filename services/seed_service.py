# backend/services/seed_service.py
"""
Development seed data. Everything goes through the regular service functions so
slugs, sort orders, SEO scores and resource counts are derived as in production.
Running it twice is harmless: existing rows (matched by name, title or
question) are left alone.
"""
import logging
from datetime import timedelta

from sqlmodel import Session, select

from core.utils import utcnow
from models.category import ResourceCategory
from models.contact_inquiry import ContactInquiry
from models.faq import Faq, FaqCategory
from models.resource import Resource
from services import category_service, contact_service, faq_service, resource_service

logger = logging.getLogger(__name__)

RESOURCE_CATEGORIES = [
    {
        "name": "Web Development", "color": "#3B82F6", "is_featured": True,
        "description": "Guides and articles about building for the web.",
        "children": ["Frontend Development", "Backend Development", "Full Stack Development"],
    },
    {
        "name": "Mobile Development", "color": "#10B981", "is_featured": True,
        "description": "Native and cross-platform mobile apps.",
        "children": ["iOS Development", "Android Development", "Cross-Platform Development"],
    },
    {
        "name": "Data Science", "color": "#8B5CF6",
        "description": "Analysis, machine learning and data engineering.",
        "children": ["Machine Learning", "Data Analysis", "Big Data"],
    },
    {
        "name": "DevOps & Cloud", "color": "#F59E0B",
        "description": "Infrastructure, delivery pipelines and cloud platforms.",
        "children": ["Cloud Platforms", "Containerization", "CI/CD"],
    },
    {
        "name": "Cybersecurity", "color": "#EF4444",
        "description": "Keeping systems and data safe.",
        "children": ["Ethical Hacking", "Network Security"],
    },
    {
        "name": "Business & Management", "color": "#6366F1",
        "description": "Running projects and teams.",
        "children": ["Project Management", "Leadership"],
    },
    {
        "name": "Design & UX", "color": "#EC4899",
        "description": "Interface design and user research.",
        "children": ["UI Design", "UX Research"],
    },
]

_PARAGRAPH = (
    "Modern teams ship faster when their tooling, processes and architecture support each other. "
    "This article walks through the practical decisions behind a maintainable setup, the trade-offs "
    "we have seen in client projects and a checklist you can apply to your own work today. "
)

RESOURCES = [
    {"title": "Getting Started with Modern Frontend Tooling", "category": "Frontend Development",
     "tags": ["javascript", "tooling", "frontend"], "is_featured": True},
    {"title": "Designing Reliable REST APIs for Growing Products", "category": "Backend Development",
     "tags": ["api", "backend"], "is_trending": True},
    {"title": "A Practical Introduction to Machine Learning Pipelines", "category": "Machine Learning",
     "tags": ["ml", "python", "data"]},
    {"title": "Container Basics for Application Developers", "category": "Containerization",
     "tags": ["docker"]},
    {"title": "Draft: Planning a Mobile Release Train", "category": "iOS Development",
     "tags": ["mobile"], "is_published": False},
]

FAQ_CATEGORIES = [
    {"name": "General", "color": "#3B82F6", "description": "General questions about our company and services."},
    {"name": "Products", "color": "#8B5CF6", "description": "Questions about our products."},
    {"name": "Services", "color": "#10B981", "description": "How our consulting engagements work."},
    {"name": "Billing", "color": "#F59E0B", "description": "Payments, invoices and refunds."},
    {"name": "Technical Support", "color": "#EF4444", "description": "Getting help with technical issues."},
    {"name": "Account Management", "color": "#6366F1", "description": "Managing your account and access."},
]

FAQS = [
    ("General", "How do I create an account?",
     "Click the sign up button at the top of any page and follow the short registration form."),
    ("Billing", "What payment methods do you accept?",
     "We accept all major credit cards, bank transfers and invoices for enterprise customers."),
    ("Services", "How can I track my project progress?",
     "Every engagement has a shared dashboard with milestones, status reports and open questions."),
    ("Billing", "What is your refund policy?",
     "Unused prepaid hours are refunded in full within thirty days of the request."),
    ("Account Management", "How do I reset my password?",
     "Use the forgot password link on the login page and follow the instructions sent by e-mail."),
    ("Technical Support", "How can I contact customer support?",
     "Reach our support team through the contact form, by e-mail or by phone during office hours."),
    ("General", "Is my personal information secure?",
     "Yes. We encrypt data in transit and at rest and only keep what is needed to serve you."),
]

CONTACT_INQUIRIES = [
    {"name": "Jane Cooper", "email": "jane.cooper@example.com", "company": "Acme Corp",
     "phone": "+1 555 010 2030", "service": "ERP Implementation",
     "message": "We are evaluating ERP vendors and would like a call next week."},
    {"name": "Ravi Kumar", "email": "ravi.kumar@example.com", "service": "Process Automation",
     "message": "Can you help us automate our invoice approval workflow?"},
    {"name": "Marta Lopez", "email": "marta@example.org", "service": "Training & Support",
     "message": "Looking for onboarding training for a team of twelve people."},
]


def seed_resource_categories(session: Session) -> int:
    created = 0
    for entry in RESOURCE_CATEGORIES:
        parent = session.exec(select(ResourceCategory).where(ResourceCategory.name == entry["name"])).first()
        if parent is None:
            fields = {key: value for key, value in entry.items() if key != "children"}
            parent = category_service.create_category(session, fields)
            created += 1
        for child_name in entry["children"]:
            exists = session.exec(select(ResourceCategory).where(ResourceCategory.name == child_name)).first()
            if exists is None:
                category_service.create_category(session, {"name": child_name, "parent_id": parent.id})
                created += 1
    return created


def seed_resources(session: Session) -> int:
    created = 0
    now = utcnow()
    for index, entry in enumerate(RESOURCES):
        if session.exec(select(Resource).where(Resource.title == entry["title"])).first() is not None:
            continue
        category = session.exec(
            select(ResourceCategory).where(ResourceCategory.name == entry["category"])
        ).first()
        published = entry.get("is_published", True)
        resource_service.create_resource(session, {
            "title": entry["title"],
            "excerpt": f"{entry['title']}: what it is, why it matters and how to get started.",
            "content": _PARAGRAPH * (3 + index * 2),
            "category_id": category.id,
            "tags": entry["tags"],
            "is_published": published,
            "published_at": now - timedelta(days=index + 1) if published else None,
            "is_featured": entry.get("is_featured", False),
            "is_trending": entry.get("is_trending", False),
        }, now=now)
        created += 1
    return created


def seed_faqs(session: Session) -> int:
    created = 0
    categories = {}
    for entry in FAQ_CATEGORIES:
        category = session.exec(select(FaqCategory).where(FaqCategory.name == entry["name"])).first()
        if category is None:
            category = faq_service.create_faq_category(session, entry)
            created += 1
        categories[entry["name"]] = category

    for order, (category_name, question, answer) in enumerate(FAQS, start=1):
        if session.exec(select(Faq).where(Faq.question == question)).first() is not None:
            continue
        faq_service.create_faq(session, {
            "question": question,
            "answer": answer,
            "category_id": categories[category_name].id,
            "sort_order": order,
            "is_featured": order <= 3,
        })
        created += 1
    return created


def seed_contact_inquiries(session: Session) -> int:
    created = 0
    for entry in CONTACT_INQUIRIES:
        if session.exec(select(ContactInquiry).where(ContactInquiry.email == entry["email"])).first() is not None:
            continue
        contact_service.submit_inquiry(session, entry, ip_address="127.0.0.1", user_agent="seed")
        created += 1
    return created


def seed_all(session: Session) -> dict:
    summary = {
        "resource_categories": seed_resource_categories(session),
        "resources": seed_resources(session),
        "faqs": seed_faqs(session),
        "contact_inquiries": seed_contact_inquiries(session),
    }
    logger.info("Seed data loaded: %s", summary)
    return summary
