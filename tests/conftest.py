import pytest

from topoplan import ResourceGraph, Topology, TopologyBuilder
from topoplan.settings import get_settings

AZS = ("us-east-1a", "us-east-1b", "us-east-1c")
CONTEXT = {"region": "us-east-1"}


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep TOPOPLAN_* variables from the environment out of the tests."""
    for name in ("TOPOPLAN_REGION", "TOPOPLAN_AVAILABILITY_ZONES", "TOPOPLAN_LOG_LEVEL", "TOPOPLAN_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)  # no stray .env file
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def graph():
    return ResourceGraph()


@pytest.fixture
def builder(graph):
    return TopologyBuilder(graph, availability_zones=AZS)


@pytest.fixture
def topology():
    return Topology(availability_zones=AZS, context=CONTEXT)


@pytest.fixture
def network_config():
    return web_network


def web_network(name: str, cidr: str, **overrides) -> dict:
    config = {
        "name": name,
        "cidr": cidr,
        "max_azs": 99,
        "flow_logs": True,
        "listener": {"protocol": "HTTP", "port": 80},
        "scaling": {"min_capacity": 2, "desired_capacity": 3, "max_capacity": 5},
        "launch": {
            "machine_image": "amazon-linux-2",
            "instance_type": "t2.micro",
            "user_data": ["yum update -y", "yum install -y httpd", "systemctl start httpd"],
        },
        "cpu_target_percent": 80,
    }
    config.update(overrides)
    return config
