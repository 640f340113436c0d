pytest_plugins = ["fieldguard.test_utils.fixtures"]
