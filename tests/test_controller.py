import unittest

from aws_browser.controller import AwsBrowserController
from aws_browser.models import ResourcePage

from fakes import FakeService


class AwsBrowserControllerTests(unittest.TestCase):
    def setUp(self):
        self.service = FakeService(
            list_instances=ResourcePage(),
            list_objects=ResourcePage(),
            fetch_cost_summary="summary",
            download_object="/tmp/file",
        )
        self.controller = AwsBrowserController(self.service, profile="dev", region="eu-west-1", page_size=25)

    def test_calls_carry_current_identity(self):
        self.controller.list_instances(continuation_token="T1")
        self.controller.list_buckets()
        self.controller.get_bucket_region(bucket_name="bucket")

        instances_call = self.service.calls_to("list_instances")[0]
        self.assertEqual("dev", instances_call["profile"])
        self.assertEqual("eu-west-1", instances_call["region"])
        self.assertEqual(25, instances_call["page_size"])
        self.assertEqual("T1", instances_call["continuation_token"])
        self.assertEqual("dev", self.service.calls_to("list_buckets")[0]["profile"])
        self.assertEqual("bucket", self.service.calls_to("get_bucket_region")[0]["bucket_name"])

    def test_list_objects_uses_page_size(self):
        self.controller.list_objects(bucket_name="bucket", prefix="logs/", continuation_token="C1")

        call = self.service.calls_to("list_objects")[0]
        self.assertEqual(
            ("bucket", "logs/", "C1", 25),
            (call["bucket_name"], call["prefix"], call["continuation_token"], call["page_size"]),
        )

    def test_select_region_reports_change(self):
        self.assertFalse(self.controller.select_region("eu-west-1"))
        self.assertTrue(self.controller.select_region("us-west-2"))
        self.controller.list_regions()

        self.assertEqual("us-west-2", self.service.calls_to("list_regions")[0]["region"])

    def test_select_profile_normalizes_empty_value(self):
        self.assertTrue(self.controller.select_profile(""))
        self.assertIsNone(self.controller.profile)
        self.assertFalse(self.controller.select_profile(None))

    def test_costs_only_need_profile(self):
        self.assertEqual("summary", self.controller.fetch_cost_summary(preset="30d"))

        call = self.service.calls_to("fetch_cost_summary")[0]
        self.assertEqual("dev", call["profile"])
        self.assertEqual("30d", call["preset"])
        self.assertNotIn("region", call)

    def test_change_instance_state_and_download_forward_arguments(self):
        self.controller.change_instance_state(instance_ids=["i-1"], target_state="stopped")
        saved = self.controller.download_object(bucket_name="bucket", key="a.txt", destination="/tmp/file")

        self.assertEqual("/tmp/file", saved)
        self.assertEqual("stopped", self.service.calls_to("change_instance_state")[0]["target_state"])
        self.assertEqual("a.txt", self.service.calls_to("download_object")[0]["key"])

    def test_page_size_is_at_least_one(self):
        controller = AwsBrowserController(self.service, page_size=0)

        self.assertEqual(1, controller.page_size)


if __name__ == "__main__":
    unittest.main()
