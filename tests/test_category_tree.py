"""
Tests for the resource category tree: navigation, cycle guard,
resource-count aggregation and deletion.
"""
import unittest
from unittest import mock
from datetime import timedelta

from sqlmodel import select

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.utils import utcnow
from models.category import ResourceCategory
from models.resource import Resource
from services import category_service, resource_service
from tests.base import DatabaseTestCase

CONTENT = "A practical walkthrough of building and shipping interfaces with modern tooling. " * 3


class CategoryTreeTestCase(DatabaseTestCase):
    """Technology > (Web Development > Frontend, Mobile)"""

    def setUp(self):
        super().setUp()
        self.root = self.create("Technology")
        self.web = self.create("Web Development", parent_id=self.root.id)
        self.frontend = self.create("Frontend", parent_id=self.web.id)
        self.mobile = self.create("Mobile", parent_id=self.root.id)

    def create(self, name, **fields):
        return category_service.create_category(self.session, {"name": name, **fields})

    def publish_in(self, category, title="Building Fast Interfaces", **fields):
        payload = {
            "title": title,
            "excerpt": "How to build fast interfaces.",
            "content": CONTENT,
            "category_id": category.id,
            "is_published": True,
        }
        payload.update(fields)
        return resource_service.create_resource(self.session, payload)

    def reload(self, category):
        self.session.expire_all()
        return self.session.get(ResourceCategory, category.id)


class TestNavigation(CategoryTreeTestCase):

    def test_level_equals_number_of_ancestors(self):
        for category in (self.root, self.web, self.frontend, self.mobile):
            self.assertEqual(
                category_service.hierarchy_level(self.session, category),
                len(category_service.ancestors_of(self.session, category)),
            )
        self.assertEqual(category_service.hierarchy_level(self.session, self.frontend), 2)

    def test_ancestors_are_root_first(self):
        names = [c.name for c in category_service.ancestors_of(self.session, self.frontend)]
        self.assertEqual(names, ["Technology", "Web Development"])

    def test_descendants_are_pre_order(self):
        names = [c.name for c in category_service.descendants_of(self.session, self.root)]
        self.assertEqual(names, ["Web Development", "Frontend", "Mobile"])

    def test_every_descendant_reports_the_root_as_ancestor(self):
        for child in category_service.descendants_of(self.session, self.root):
            self.assertTrue(category_service.is_descendant_of(self.session, child, self.root))
        self.assertFalse(category_service.is_descendant_of(self.session, self.root, self.root))

    def test_breadcrumb_ends_with_the_category(self):
        crumbs = category_service.get_breadcrumb(self.session, self.frontend.id)
        self.assertEqual([c.name for c in crumbs], ["Technology", "Web Development", "Frontend"])
        self.assertTrue(crumbs[-1].url.endswith("/resources/category/frontend"))

    def test_ancestor_and_descendant_checks(self):
        self.assertTrue(category_service.is_ancestor_of(self.session, self.root, self.frontend))
        self.assertTrue(category_service.is_descendant_of(self.session, self.frontend, self.root))
        self.assertFalse(category_service.is_ancestor_of(self.session, self.mobile, self.frontend))

    def test_hierarchy_nests_active_children(self):
        tree = category_service.get_hierarchy(self.session)
        self.assertEqual([node.name for node in tree], ["Technology"])
        self.assertEqual([node.name for node in tree[0].children], ["Web Development", "Mobile"])
        self.assertEqual([node.name for node in tree[0].children[0].children], ["Frontend"])

    def test_hierarchy_hides_inactive_categories(self):
        category_service.update_category(self.session, self.mobile.id, {"is_active": False})
        tree = category_service.get_hierarchy(self.session)
        self.assertEqual([node.name for node in tree[0].children], ["Web Development"])

    def test_flat_list_indents_by_level(self):
        flat = category_service.get_flat_list(self.session)
        self.assertEqual(
            [(item.name, item.level) for item in flat],
            [("Technology", 0), ("— Web Development", 1), ("— — Frontend", 2), ("— Mobile", 1)],
        )

    def test_sort_order_defaults_to_next_value(self):
        self.assertEqual([self.root.sort_order, self.web.sort_order, self.frontend.sort_order], [1, 2, 3])

    def test_lookup_by_slug_requires_active(self):
        self.assertEqual(category_service.get_category_by_slug(self.session, "mobile").id, self.mobile.id)
        category_service.update_category(self.session, self.mobile.id, {"is_active": False})
        with self.assertRaises(NotFoundError):
            category_service.get_category_by_slug(self.session, "mobile")

    def test_search_and_stats(self):
        self.create("Design", is_featured=True, description="Interfaces and research")
        found = category_service.search_categories(self.session, "interfaces")
        self.assertEqual([c.name for c in found], ["Design"])

        stats = category_service.category_stats(self.session)
        self.assertEqual(stats.total_categories, 5)
        self.assertEqual(stats.root_categories, 2)
        self.assertEqual(stats.featured_categories, 1)
        self.assertEqual([c.name for c in category_service.get_featured(self.session)], ["Design"])


class TestValidation(CategoryTreeTestCase):

    def test_duplicate_name_is_rejected_case_insensitively(self):
        with self.assertRaises(ValidationError) as ctx:
            self.create("web development")
        self.assertEqual(ctx.exception.errors["name"], [category_service.DUPLICATE_NAME_MESSAGE])

    def test_missing_parent_on_create(self):
        with self.assertRaises(NotFoundError):
            self.create("Orphan", parent_id=999)

    def test_bad_color_is_a_field_error(self):
        with self.assertRaises(ValidationError) as ctx:
            self.create("Colors", color="blue")
        self.assertIn("color", ctx.exception.errors)

    def test_cannot_be_own_parent(self):
        with self.assertRaises(ValidationError) as ctx:
            category_service.update_category(self.session, self.web.id, {"parent_id": self.web.id})
        self.assertEqual(ctx.exception.errors["parent_id"], [category_service.SELF_PARENT_MESSAGE])

    def test_cycle_is_rejected_and_nothing_changes(self):
        with self.assertRaises(ValidationError) as ctx:
            category_service.update_category(self.session, self.root.id, {"parent_id": self.frontend.id})
        self.assertEqual(ctx.exception.errors["parent_id"], [category_service.CYCLE_MESSAGE])
        self.assertIsNone(self.reload(self.root).parent_id)

    def test_would_create_cycle(self):
        self.assertTrue(category_service.would_create_cycle(self.session, self.root.id, self.frontend.id))
        self.assertTrue(category_service.would_create_cycle(self.session, self.web.id, self.web.id))
        self.assertFalse(category_service.would_create_cycle(self.session, self.mobile.id, self.frontend.id))
        self.assertFalse(category_service.would_create_cycle(self.session, self.mobile.id, None))

    def test_pre_existing_cycle_is_reported(self):
        # Corrupt the tree behind the service's back
        self.root.parent_id = self.frontend.id
        self.session.add(self.root)
        self.session.commit()
        with self.assertRaises(ConflictError):
            category_service.ancestors_of(self.session, self.frontend)

    def test_rename_keeps_slug_unless_cleared(self):
        updated = category_service.update_category(self.session, self.mobile.id, {"name": "Mobile Apps"})
        self.assertEqual(updated.slug, "mobile")

        updated = category_service.update_category(self.session, self.mobile.id, {"slug": ""})
        self.assertEqual(updated.slug, "mobile-apps")

    def test_move_to_new_parent(self):
        category_service.update_category(self.session, self.frontend.id, {"parent_id": self.mobile.id})
        self.assertEqual(category_service.hierarchy_level(self.session, self.reload(self.frontend)), 2)
        names = [c.name for c in category_service.descendants_of(self.session, self.reload(self.mobile))]
        self.assertEqual(names, ["Frontend"])


class TestResourceCounts(CategoryTreeTestCase):

    def test_published_resource_counts_up_the_chain(self):
        self.publish_in(self.frontend)
        self.assertEqual(self.reload(self.frontend).resource_count, 1)
        self.assertEqual(self.reload(self.web).resource_count, 1)
        self.assertEqual(self.reload(self.root).resource_count, 1)
        self.assertEqual(self.reload(self.mobile).resource_count, 0)

    def test_drafts_and_future_resources_are_not_counted(self):
        self.publish_in(self.mobile, title="Draft Notes", is_published=False)
        self.publish_in(self.mobile, title="Coming Soon", published_at=utcnow() + timedelta(days=3))
        self.assertEqual(self.reload(self.mobile).resource_count, 0)

    def test_recount_is_idempotent(self):
        self.publish_in(self.frontend)
        self.publish_in(self.mobile, title="Shipping Mobile Apps")
        first = category_service.recount(self.session, self.root.id)
        second = category_service.recount(self.session, self.root.id)
        self.assertEqual(first, 2)
        self.assertEqual(first, second)
        self.assertEqual(self.reload(self.web).resource_count, 1)

    def test_inactive_child_is_left_out_of_parent_total(self):
        self.publish_in(self.frontend)
        category_service.update_category(self.session, self.web.id, {"is_active": False})
        self.assertEqual(self.reload(self.web).resource_count, 1)
        self.assertEqual(self.reload(self.root).resource_count, 0)

    def test_reparenting_updates_old_and_new_chains(self):
        self.publish_in(self.frontend)
        other = self.create("Other")
        category_service.update_category(self.session, self.web.id, {"parent_id": other.id})
        self.assertEqual(self.reload(self.root).resource_count, 0)
        self.assertEqual(self.reload(other).resource_count, 1)

    def test_popular_orders_by_count(self):
        self.publish_in(self.frontend)
        popular = [c.name for c in category_service.get_popular(self.session)]
        self.assertEqual(popular, ["Frontend", "Technology", "Web Development"])


class TestDeletion(CategoryTreeTestCase):

    def test_children_move_up_to_grandparent(self):
        self.assertEqual(category_service.hierarchy_level(self.session, self.frontend), 2)
        category_service.delete_category(self.session, self.web.id)

        frontend = self.reload(self.frontend)
        self.assertEqual(frontend.parent_id, self.root.id)
        self.assertEqual(category_service.hierarchy_level(self.session, frontend), 1)

    def test_deleting_a_root_promotes_children_to_roots(self):
        category_service.delete_category(self.session, self.root.id)
        roots = [node.name for node in category_service.get_hierarchy(self.session)]
        self.assertEqual(roots, ["Web Development", "Mobile"])

    def test_resources_are_uncategorized_and_counts_refreshed(self):
        resource = self.publish_in(self.web)
        self.assertEqual(self.reload(self.root).resource_count, 1)

        category_service.delete_category(self.session, self.web.id)

        self.session.expire_all()
        self.assertIsNone(self.session.get(Resource, resource.id).category_id)
        left = self.session.exec(select(Resource).where(Resource.category_id == self.web.id)).all()
        self.assertEqual(left, [])
        self.assertEqual(self.reload(self.root).resource_count, 0)

    def test_deleted_category_is_hidden(self):
        category_service.delete_category(self.session, self.mobile.id)
        self.assertIsNotNone(self.reload(self.mobile).deleted_at)
        with self.assertRaises(NotFoundError):
            category_service.get_category(self.session, self.mobile.id)

    def test_can_delete_only_empty_leaves(self):
        self.assertTrue(category_service.can_delete(self.session, self.mobile))
        self.assertFalse(category_service.can_delete(self.session, self.web))
        self.publish_in(self.mobile)
        self.assertFalse(category_service.can_delete(self.session, self.mobile))

    def test_failed_delete_leaves_tree_untouched(self):
        resource = self.publish_in(self.web)
        with mock.patch("services.category_store.soft_delete", side_effect=RuntimeError("disk full")):
            with self.assertRaises(RuntimeError):
                category_service.delete_category(self.session, self.web.id)

        self.assertEqual(self.reload(self.frontend).parent_id, self.web.id)
        self.assertIsNone(self.reload(self.web).deleted_at)
        self.assertEqual(self.session.get(Resource, resource.id).category_id, self.web.id)
        self.assertEqual(self.reload(self.root).resource_count, 1)


class TestBulkActions(CategoryTreeTestCase):

    def bulk(self, action, *categories):
        return category_service.bulk_action(
            self.session, {"action": action, "category_ids": [c.id for c in categories]}
        )

    def test_deactivate_and_activate_recount_parents(self):
        self.publish_in(self.frontend)
        self.assertEqual(self.bulk("deactivate", self.web), 1)
        self.assertFalse(self.reload(self.web).is_active)
        self.assertEqual(self.reload(self.root).resource_count, 0)

        self.bulk("activate", self.web)
        self.assertEqual(self.reload(self.root).resource_count, 1)

    def test_feature_and_unfeature(self):
        self.assertEqual(self.bulk("feature", self.mobile, self.frontend), 2)
        featured = [c.name for c in category_service.get_featured(self.session)]
        self.assertEqual(featured, ["Frontend", "Mobile"])

        self.bulk("unfeature", self.frontend)
        self.assertEqual([c.name for c in category_service.get_featured(self.session)], ["Mobile"])

    def test_delete_is_refused_when_any_category_is_in_use(self):
        with self.assertRaises(ValidationError) as ctx:
            self.bulk("delete", self.mobile, self.web)
        self.assertEqual(ctx.exception.errors["categories"], [category_service.BULK_DELETE_MESSAGE])
        self.assertIsNone(self.reload(self.mobile).deleted_at)

    def test_delete_empty_leaves(self):
        self.bulk("delete", self.frontend, self.mobile)
        self.assertIsNotNone(self.reload(self.frontend).deleted_at)
        self.assertIsNotNone(self.reload(self.mobile).deleted_at)
        self.assertTrue(category_service.can_delete(self.session, self.reload(self.web)))

    def test_unknown_ids_and_actions_are_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            category_service.bulk_action(self.session, {"action": "feature", "category_ids": [self.web.id, 999]})
        self.assertIn("category_ids", ctx.exception.errors)

        with self.assertRaises(ValidationError) as ctx:
            category_service.bulk_action(self.session, {"action": "archive", "category_ids": [self.web.id]})
        self.assertIn("action", ctx.exception.errors)

    def test_reorder(self):
        category_service.reorder_categories(self.session, {"categories": [
            {"id": self.mobile.id, "sort_order": 0},
            {"id": self.web.id, "sort_order": 5},
        ]})
        tree = category_service.get_hierarchy(self.session)
        self.assertEqual([node.name for node in tree[0].children], ["Mobile", "Web Development"])

    def test_reorder_rejects_bad_items(self):
        with self.assertRaises(ValidationError) as ctx:
            category_service.reorder_categories(
                self.session, {"categories": [{"id": self.web.id, "sort_order": -1}]}
            )
        self.assertIn("categories.0.sort_order", ctx.exception.errors)

        with self.assertRaises(ValidationError) as ctx:
            category_service.reorder_categories(self.session, {"categories": [{"id": 999, "sort_order": 1}]})
        self.assertIn("categories", ctx.exception.errors)


class TestRelatedAndFeatured(CategoryTreeTestCase):

    def setUp(self):
        super().setUp()
        self.backend = self.create("Backend", parent_id=self.web.id)
        self.publish_in(self.frontend)
        self.publish_in(self.mobile, title="Shipping Mobile Apps")

    def test_siblings_come_before_popular_categories(self):
        related = category_service.related_categories(self.session, "frontend", limit=3)
        self.assertEqual([c.name for c in related], ["Backend", "Technology", "Mobile"])

    def test_roots_only_get_popular_categories(self):
        related = category_service.related_categories(self.session, "technology", limit=2)
        self.assertEqual([c.name for c in related], ["Frontend", "Mobile"])

    def test_unknown_slug(self):
        with self.assertRaises(NotFoundError):
            category_service.related_categories(self.session, "gardening")

    def test_featured_categories_carry_newest_resources(self):
        category_service.update_category(self.session, self.mobile.id, {"is_featured": True})
        now = utcnow()
        for hours in range(1, 8):
            self.publish_in(self.mobile, title=f"Mobile Release Notes {hours}",
                            published_at=now - timedelta(hours=hours))

        featured = category_service.get_featured_with_resources(self.session)
        self.assertEqual(len(featured), 1)
        category, resources = featured[0]
        self.assertEqual(category.name, "Mobile")
        self.assertEqual(len(resources), 6)
        self.assertEqual(resources[0].title, "Shipping Mobile Apps")
        self.assertEqual(resources[-1].title, "Mobile Release Notes 5")


if __name__ == "__main__":
    unittest.main()
