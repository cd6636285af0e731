import unittest


class SmokeTest(unittest.TestCase):
    def test_import_domain_modules(self):
        import cutlist_planner  # noqa: F401
        import cutlist_planner.boards  # noqa: F401
        import cutlist_planner.config  # noqa: F401
        import cutlist_planner.io  # noqa: F401
        import cutlist_planner.labeling  # noqa: F401
        import cutlist_planner.models  # noqa: F401
        import cutlist_planner.orientation  # noqa: F401
        import cutlist_planner.packing  # noqa: F401
        import cutlist_planner.planner  # noqa: F401
        import cutlist_planner.reporting  # noqa: F401


if __name__ == '__main__':
    unittest.main()
