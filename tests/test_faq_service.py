"""
Tests for FAQ categories, FAQs and helpfulness voting.
"""
import unittest

from core.exceptions import NotFoundError, ValidationError
from models.faq import FaqStatus
from services import faq_service
from tests.base import DatabaseTestCase


class FaqTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.general = faq_service.create_faq_category(self.session, {"name": "General", "color": "#3B82F6"})
        self.billing = faq_service.create_faq_category(self.session, {"name": "Billing"})

    def create_faq(self, question="How do I create an account?", **fields):
        payload = {
            "question": question,
            "answer": "Click sign up at the top of the page and fill in the form.",
            "category_id": self.general.id,
        }
        payload.update(fields)
        return faq_service.create_faq(self.session, payload)


class TestFaqCategories(FaqTestCase):

    def test_slug_and_sort_order_are_derived(self):
        self.assertEqual(self.general.slug, "general")
        self.assertEqual([self.general.sort_order, self.billing.sort_order], [1, 2])

    def test_cannot_delete_category_with_faqs(self):
        self.create_faq()
        with self.assertRaises(ValidationError) as ctx:
            faq_service.delete_faq_category(self.session, self.general.id)
        self.assertIn("category", ctx.exception.errors)

    def test_delete_empty_category(self):
        faq_service.delete_faq_category(self.session, self.billing.id)
        with self.assertRaises(NotFoundError):
            faq_service.get_faq_category(self.session, self.billing.id)

    def test_list_with_counts_hides_inactive(self):
        self.create_faq()
        faq_service.update_faq_category(self.session, self.billing.id, {"status": "inactive"})
        listed = faq_service.list_faq_categories(self.session)
        self.assertEqual([(c.name, c.faqs_count) for c in listed], [("General", 1)])
        self.assertEqual(len(faq_service.list_faq_categories(self.session, active_only=False)), 2)

    def test_clearing_slug_regenerates_it_from_name(self):
        updated = faq_service.update_faq_category(
            self.session, self.billing.id, {"name": "Payments", "slug": ""}
        )
        self.assertEqual(updated.slug, "payments")

    def test_unchanged_slug_in_other_case_is_kept(self):
        faq_service.create_faq_category(self.session, {"name": "General Billing"})
        updated = faq_service.update_faq_category(self.session, self.general.id, {"slug": " General "})
        self.assertEqual(updated.slug, "general")


class TestFaqs(FaqTestCase):

    def test_create_derives_slug(self):
        faq = self.create_faq()
        self.assertEqual(faq.slug, "how-do-i-create-an-account")
        self.assertEqual(faq.status, FaqStatus.ACTIVE)

    def test_short_question_and_unknown_category(self):
        with self.assertRaises(ValidationError) as ctx:
            self.create_faq(question="Why?")
        self.assertIn("question", ctx.exception.errors)

        with self.assertRaises(ValidationError) as ctx:
            self.create_faq(category_id=999)
        self.assertIn("category_id", ctx.exception.errors)

    def test_lookup_counts_views(self):
        faq = self.create_faq()
        faq_service.get_faq_by_slug(self.session, faq.slug)
        viewed = faq_service.get_faq_by_slug(self.session, faq.slug)
        self.assertEqual(viewed.view_count, 2)

    def test_inactive_faq_is_not_found_by_slug(self):
        faq = self.create_faq()
        faq_service.update_faq(self.session, faq.id, {"status": "inactive"})
        with self.assertRaises(NotFoundError):
            faq_service.get_faq_by_slug(self.session, faq.slug)

    def test_helpfulness_votes(self):
        faq = self.create_faq()
        faq_service.mark_helpful(self.session, faq.slug)
        faq_service.mark_helpful(self.session, faq.slug)
        faq = faq_service.mark_not_helpful(self.session, faq.slug)
        self.assertEqual((faq.helpful_count, faq.not_helpful_count), (2, 1))
        self.assertEqual(faq.helpfulness_ratio, 66.7)

    def test_votes_ignored_when_tracking_disabled(self):
        faq = self.create_faq(is_helpful_tracking=False)
        faq = faq_service.mark_helpful(self.session, faq.slug)
        self.assertEqual(faq.helpful_count, 0)
        self.assertEqual(faq.helpfulness_ratio, 0)

    def test_list_filters(self):
        self.create_faq(sort_order=2)
        self.create_faq("What payment methods do you accept?", category_id=self.billing.id,
                        is_featured=True, sort_order=1)

        everything = faq_service.list_faqs(self.session)
        self.assertEqual([f.question for f in everything],
                         ["What payment methods do you accept?", "How do I create an account?"])
        self.assertEqual(len(faq_service.list_faqs(self.session, category_id=self.general.id)), 1)
        self.assertEqual(len(faq_service.list_faqs(self.session, featured=True)), 1)
        self.assertEqual(len(faq_service.list_faqs(self.session, search="payment")), 1)

    def test_stats(self):
        faq = self.create_faq()
        self.create_faq("Is my data stored securely?", status="inactive")
        faq_service.get_faq_by_slug(self.session, faq.slug)
        faq_service.mark_helpful(self.session, faq.slug)

        stats = faq_service.faq_stats(self.session)
        self.assertEqual((stats.total, stats.active, stats.inactive), (2, 1, 1))
        self.assertEqual(stats.total_views, 1)
        self.assertEqual(stats.total_helpful, 1)
        self.assertEqual(stats.categories, {"General": 2})

    def test_delete(self):
        faq = self.create_faq()
        faq_service.delete_faq(self.session, faq.id)
        with self.assertRaises(NotFoundError):
            faq_service.get_faq(self.session, faq.id)

    def test_unchanged_slug_in_other_case_is_kept(self):
        faq = self.create_faq()
        self.create_faq("How do I create an account for my team?")
        updated = faq_service.update_faq(self.session, faq.id, {"slug": "How Do I Create An Account"})
        self.assertEqual(updated.slug, "how-do-i-create-an-account")


class TestFaqAdministration(FaqTestCase):

    def test_toggle_status_and_featured(self):
        faq = self.create_faq()
        self.assertEqual(faq_service.toggle_faq_status(self.session, faq.id).status, FaqStatus.INACTIVE)
        self.assertEqual(faq_service.toggle_faq_status(self.session, faq.id).status, FaqStatus.ACTIVE)
        self.assertTrue(faq_service.toggle_faq_featured(self.session, faq.id).is_featured)
        self.assertFalse(faq_service.toggle_faq_featured(self.session, faq.id).is_featured)

    def test_bulk_actions(self):
        first = self.create_faq()
        second = self.create_faq("What payment methods do you accept?")
        ids = [first.id, second.id]

        self.assertEqual(faq_service.faq_bulk_action(self.session, {"action": "feature", "ids": ids}), 2)
        self.assertEqual(len(faq_service.list_faqs(self.session, featured=True)), 2)

        faq_service.faq_bulk_action(self.session, {"action": "deactivate", "ids": ids})
        self.assertEqual(faq_service.list_faqs(self.session), [])

        faq_service.faq_bulk_action(self.session, {"action": "delete", "ids": [first.id]})
        with self.assertRaises(NotFoundError):
            faq_service.get_faq(self.session, first.id)
        self.assertEqual(faq_service.get_faq(self.session, second.id).status, FaqStatus.INACTIVE)

    def test_bulk_action_rejects_unknown_faqs(self):
        faq = self.create_faq()
        with self.assertRaises(ValidationError) as ctx:
            faq_service.faq_bulk_action(self.session, {"action": "activate", "ids": [faq.id, 999]})
        self.assertIn("ids", ctx.exception.errors)

        with self.assertRaises(ValidationError) as ctx:
            faq_service.faq_bulk_action(self.session, {"action": "activate", "ids": []})
        self.assertIn("ids", ctx.exception.errors)

    def test_category_toggle_and_bulk_status(self):
        category = faq_service.toggle_faq_category_status(self.session, self.billing.id)
        self.assertEqual(category.status, FaqStatus.INACTIVE)

        ids = [self.general.id, self.billing.id]
        faq_service.faq_category_bulk_action(self.session, {"action": "deactivate", "ids": ids})
        self.assertEqual(faq_service.list_faq_categories(self.session), [])
        faq_service.faq_category_bulk_action(self.session, {"action": "activate", "ids": ids})
        self.assertEqual(len(faq_service.list_faq_categories(self.session)), 2)

    def test_category_bulk_delete_is_refused_while_faqs_remain(self):
        self.create_faq()
        ids = [self.general.id, self.billing.id]
        with self.assertRaises(ValidationError) as ctx:
            faq_service.faq_category_bulk_action(self.session, {"action": "delete", "ids": ids})
        self.assertIn("categories", ctx.exception.errors)
        self.assertEqual(len(faq_service.list_faq_categories(self.session)), 2)

        faq_service.faq_category_bulk_action(self.session, {"action": "delete", "ids": [self.billing.id]})
        with self.assertRaises(NotFoundError):
            faq_service.get_faq_category(self.session, self.billing.id)

    def test_category_reorder(self):
        faq_service.reorder_faq_categories(self.session, {"categories": [
            {"id": self.general.id, "sort_order": 9},
            {"id": self.billing.id, "sort_order": 0},
        ]})
        names = [c.name for c in faq_service.list_faq_categories(self.session)]
        self.assertEqual(names, ["Billing", "General"])

        with self.assertRaises(ValidationError) as ctx:
            faq_service.reorder_faq_categories(self.session, {"categories": [{"id": 999, "sort_order": 1}]})
        self.assertIn("categories", ctx.exception.errors)


if __name__ == "__main__":
    unittest.main()
