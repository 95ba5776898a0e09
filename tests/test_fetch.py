import unittest

from aws_browser.fetch import FetchSession


class FetchSessionTests(unittest.TestCase):
    def test_new_fetch_supersedes_previous(self):
        session = FetchSession()
        first = session.begin()
        second = session.begin()

        self.assertTrue(first.cancelled)
        self.assertTrue(first.cancel_requested())
        self.assertFalse(second.cancelled)
        self.assertFalse(session.is_current(first))
        self.assertTrue(session.is_current(second))
        self.assertEqual(2, session.generation)

    def test_invalidate_discards_current_ticket(self):
        session = FetchSession()
        ticket = session.begin()

        session.invalidate()

        self.assertTrue(ticket.cancelled)
        self.assertFalse(session.is_current(ticket))

    def test_generations_increase_monotonically(self):
        session = FetchSession()
        seen = []
        for _ in range(3):
            seen.append(session.begin().generation)
            session.invalidate()

        self.assertEqual(sorted(set(seen)), seen)
        self.assertGreater(session.generation, seen[-1])


if __name__ == "__main__":
    unittest.main()
