import unittest

from botocore.exceptions import ClientError, ProfileNotFound

from aws_browser.controller import AwsBrowserController
from aws_browser.models import (
    KIND_COSTS,
    KIND_INSTANCES,
    KIND_OBJECTS,
    Bucket,
    HomePage,
    Instance,
    ObjectFile,
    ObjectFolder,
    RegionSummary,
    ResourceDetailPage,
    ResourceListPage,
    ResourcePage,
)
from aws_browser.costs import aggregate_costs
from aws_browser.objects_view import DOWNLOAD_DONE
from aws_browser.presenter import BrowserPresenter
from aws_browser.shell import PICKER_PROFILE, PICKER_REGION, BrowserShell

from fakes import FakeService, ManualRunner, MemorySettingsStorage


def objects_page(**kwargs):
    if kwargs["prefix"] == "":
        return ResourcePage(items=[ObjectFolder("docs/"), ObjectFile("top.txt", 1)])
    return ResourcePage(items=[ObjectFile("docs/a.txt", 2)])


class BrowserShellTests(unittest.TestCase):
    def setUp(self):
        self.service = FakeService(
            list_profiles=["default", "prod"],
            list_regions=[RegionSummary("eu-west-1"), RegionSummary("us-west-2")],
            list_instances=ResourcePage(items=[Instance("i-1", state="running")]),
            list_buckets=[Bucket("bucket")],
            list_objects=objects_page,
            fetch_cost_summary=aggregate_costs([]),
        )
        self.runner = ManualRunner()
        self.storage = MemorySettingsStorage()
        presenter = BrowserPresenter(
            controller=AwsBrowserController(self.service, profile="default", region="eu-west-1"),
            settings_storage=self.storage,
            runner=self.runner,
        )
        self.shell = BrowserShell(presenter)
        self.renders = []
        self.shell.add_listener(lambda: self.renders.append(self.shell.active_page))

    def settle(self):
        self.runner.run_all()

    def test_home_menu_opens_services(self):
        self.shell.move_selection(1)
        self.shell.confirm()
        self.settle()

        self.assertEqual(ResourceListPage(KIND_OBJECTS), self.shell.active_page)
        self.assertEqual([Bucket("bucket")], self.shell.objects.items)
        self.assertTrue(self.renders)

    def test_unknown_service_is_rejected(self):
        with self.assertRaises(ValueError):
            self.shell.open_service("lambda")

    def test_drill_in_and_out_of_folders(self):
        self.shell.open_service(KIND_OBJECTS)
        self.settle()
        self.shell.confirm()
        self.settle()
        self.shell.confirm()
        self.settle()

        self.assertEqual(ResourceListPage(KIND_OBJECTS, container="bucket", prefix="docs/"), self.shell.active_page)
        self.assertEqual([ObjectFile("docs/a.txt", 2)], self.shell.objects.items)

        self.assertTrue(self.shell.back())
        self.settle()
        self.assertEqual(ResourceListPage(KIND_OBJECTS, container="bucket"), self.shell.active_page)
        self.assertEqual("top.txt", self.shell.objects.items[1].key)

        self.assertTrue(self.shell.forward())
        self.settle()
        self.assertEqual("docs/", self.shell.active_page.prefix)

    def test_opening_a_file_shows_detail_page(self):
        self.shell.push(ResourceListPage(KIND_OBJECTS, container="bucket"))
        self.settle()
        self.shell.move_selection(1)

        self.shell.confirm()

        page = self.shell.active_page
        self.assertIsInstance(page, ResourceDetailPage)
        self.assertEqual(("bucket", "top.txt"), self.shell.objects.download_target)

    def test_region_change_keeps_open_file_downloadable(self):
        self.service.responses["download_object"] = lambda **kwargs: kwargs["destination"]
        self.shell.push(ResourceListPage(KIND_OBJECTS, container="bucket"))
        self.settle()
        self.shell.move_selection(1)
        self.shell.confirm()
        self.settle()

        self.shell.select_region("us-west-2")

        self.assertEqual(("bucket", "top.txt"), self.shell.objects.download_target)
        self.assertTrue(self.shell.objects.download("/tmp/top.txt"))
        self.settle()
        self.assertEqual(DOWNLOAD_DONE, self.shell.objects.download_status)
        self.assertEqual("top.txt", self.service.calls_to("download_object")[-1]["key"])

    def test_page_change_clears_error(self):
        self.service.responses["list_instances"] = ClientError(
            {"Error": {"Code": "UnauthorizedOperation", "Message": "no"}}, "DescribeInstances"
        )
        self.shell.open_service(KIND_INSTANCES)
        with self.assertLogs("aws_browser.presenter", level="ERROR"):
            self.settle()
        self.assertIsNotNone(self.shell.instances.error)

        self.shell.back()

        self.assertIsNone(self.shell.instances.error)
        self.assertEqual(HomePage(), self.shell.active_page)

    def test_leaving_a_view_discards_its_results(self):
        self.shell.open_service(KIND_INSTANCES)
        self.shell.back()
        self.settle()

        self.assertEqual([], self.shell.instances.items)
        self.assertFalse(self.shell.instances.loading)

        self.shell.open_service(KIND_INSTANCES)
        self.settle()
        self.assertEqual(["i-1"], [i.id for i in self.shell.instances.items])

    def test_instance_detail_page(self):
        self.shell.open_service(KIND_INSTANCES)
        self.settle()

        self.shell.confirm()

        self.assertEqual(ResourceDetailPage(KIND_INSTANCES, Instance("i-1", state="running")), self.shell.active_page)

    def test_auto_refresh_only_on_instances_list(self):
        self.shell.open_service(KIND_COSTS)
        self.settle()
        self.shell.auto_refresh()
        self.assertEqual(0, self.runner.pending)

        self.shell.back()
        self.shell.open_service(KIND_INSTANCES)
        self.settle()
        self.shell.auto_refresh()
        self.assertEqual(1, self.runner.pending)

    def test_region_picker_changes_region_and_resets_views(self):
        self.shell.open_service(KIND_INSTANCES)
        self.settle()

        self.shell.open_region_picker()
        self.assertTrue(self.shell.picker.loading)
        self.settle()
        self.assertEqual(PICKER_REGION, self.shell.picker.kind)
        self.assertEqual(["eu-west-1", "us-west-2"], self.shell.picker.items)
        self.assertEqual(0, self.shell.picker.selected)

        self.shell.move_selection(1)
        self.shell.confirm()

        self.assertIsNone(self.shell.picker)
        self.assertEqual("us-west-2", self.shell.region)
        self.assertEqual("us-west-2", self.storage.saved[-1].region)
        self.assertTrue(self.shell.instances.loading)
        self.settle()
        self.assertEqual("us-west-2", self.service.calls_to("list_instances")[-1]["region"])

    def test_choosing_same_region_keeps_views(self):
        self.shell.open_service(KIND_INSTANCES)
        self.settle()
        calls = len(self.service.calls_to("list_instances"))

        self.shell.select_region("eu-west-1")

        self.assertEqual(calls, len(self.service.calls_to("list_instances")))
        self.assertEqual(1, len(self.shell.instances.items))

    def test_regions_are_loaded_once(self):
        self.shell.open_region_picker()
        self.settle()
        self.shell.close_picker()
        self.shell.open_region_picker()

        self.assertFalse(self.shell.picker.loading)
        self.assertEqual(1, len(self.service.calls_to("list_regions")))

    def test_closing_picker_discards_region_lookup(self):
        self.shell.open_region_picker()
        self.shell.close_picker()
        self.settle()

        self.assertIsNone(self.shell.picker)
        self.shell.open_region_picker()
        self.assertTrue(self.shell.picker.loading)

    def test_profile_picker_switches_profile(self):
        self.shell.open_service(KIND_OBJECTS)
        self.settle()

        self.shell.open_profile_picker()
        self.assertEqual(PICKER_PROFILE, self.shell.picker.kind)
        self.assertEqual(["default", "prod"], self.shell.picker.items)
        self.shell.move_selection(1)
        self.shell.confirm()
        self.settle()

        self.assertEqual("prod", self.shell.profile)
        self.assertEqual("prod", self.service.calls_to("list_buckets")[-1]["profile"])

    def test_profile_picker_reports_errors(self):
        self.service.responses["list_profiles"] = ProfileNotFound(profile="broken")

        with self.assertLogs("aws_browser.shell", level="ERROR"):
            self.shell.open_profile_picker()

        self.assertIn("broken", self.shell.picker.error)
        self.shell.confirm()
        self.assertIsNotNone(self.shell.picker)

    def test_cancel_pending_on_active_view(self):
        self.shell.open_service(KIND_INSTANCES)
        self.assertTrue(self.shell.instances.loading)

        self.shell.cancel_pending()
        self.settle()

        self.assertFalse(self.shell.instances.loading)
        self.assertEqual([], self.shell.instances.items)


if __name__ == "__main__":
    unittest.main()
