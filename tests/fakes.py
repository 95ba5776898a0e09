from aws_browser.services import RequestCancelledError
from aws_browser.settings import AppSettings


class FakeService:
    """Scripted stand-in for :class:`AwsBrowserService`.

    ``responses`` maps a method name to a value, an exception instance (raised)
    or a callable receiving the call's keyword arguments.
    """

    def __init__(self, **responses):
        self.responses = {
            "list_profiles": [],
            "list_regions": [],
            "describe_instance_statuses": [],
            "change_instance_state": None,
            "list_buckets": [],
            "get_bucket_region": "us-east-1",
        }
        self.responses.update(responses)
        self.calls = []

    def calls_to(self, name):
        return [kwargs for call_name, kwargs in self.calls if call_name == name]

    def _respond(self, name, kwargs):
        self.calls.append((name, kwargs))
        cancel_requested = kwargs.get("cancel_requested")
        if cancel_requested and cancel_requested():
            raise RequestCancelledError("Request cancelled")
        response = self.responses[name]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(**kwargs)
        return response

    def list_profiles(self):
        return self._respond("list_profiles", {})

    def list_regions(self, **kwargs):
        return self._respond("list_regions", kwargs)

    def list_instances(self, **kwargs):
        return self._respond("list_instances", kwargs)

    def describe_instance_statuses(self, **kwargs):
        return self._respond("describe_instance_statuses", kwargs)

    def change_instance_state(self, **kwargs):
        return self._respond("change_instance_state", kwargs)

    def list_buckets(self, **kwargs):
        return self._respond("list_buckets", kwargs)

    def get_bucket_region(self, **kwargs):
        return self._respond("get_bucket_region", kwargs)

    def list_objects(self, **kwargs):
        return self._respond("list_objects", kwargs)

    def download_object(self, **kwargs):
        return self._respond("download_object", kwargs)

    def fetch_cost_summary(self, **kwargs):
        return self._respond("fetch_cost_summary", kwargs)


class ManualRunner:
    """Collects background tasks so tests decide when, and in which order, they run."""

    def __init__(self):
        self.tasks = []

    def __call__(self, task):
        self.tasks.append(task)

    @property
    def pending(self):
        return len(self.tasks)

    def run(self, index=0):
        self.tasks.pop(index)()

    def run_last(self):
        self.run(len(self.tasks) - 1)

    def run_all(self):
        while self.tasks:
            self.run(0)


class MemorySettingsStorage:
    def __init__(self, settings=None):
        self.settings = settings or AppSettings()
        self.saved = []

    def load(self):
        return self.settings

    def save(self, settings):
        self.saved.append(settings)
