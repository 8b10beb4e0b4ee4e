from hubproxy.tests.fixtures_clients import *  # noqa
