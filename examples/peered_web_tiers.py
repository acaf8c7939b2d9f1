#!/usr/bin/env python3
"""Example: two peered web tiers.

Two networks, each with an internet-facing load balancer in front of an
autoscaled pool of web servers, peered so that their private subnets can
reach each other. Prints the emitted plan as JSON.

Run with: python examples/peered_web_tiers.py
"""

from topoplan import Topology, configure_logging


def web_tier(count: int, cidr: str) -> dict:
    """Definition of one web tier; `count` only shows up in names and the page."""
    return {
        "name": f"VPC{count}",
        "cidr": cidr,
        "max_azs": 99,  # every AZ the inventory offers
        "flow_logs": True,
        "listener": {"protocol": "HTTP", "port": 80},
        "scaling": {"min_capacity": 2, "desired_capacity": 3, "max_capacity": 5},
        "launch": {
            "machine_image": "amazon-linux-2",
            "instance_type": "t2.micro",
            "user_data": [
                "yum update -y",
                "yum install -y httpd",
                "systemctl start httpd",
                "systemctl enable httpd",
                f'echo "<h1>Hello World {count} from $(hostname -f)</h1>" > /var/www/html/index.html',
            ],
        },
        "cpu_target_percent": 80,
    }


def main() -> None:
    configure_logging()

    topology = Topology()
    vpc1 = topology.define_network(web_tier(1, "10.42.11.0/24"))
    vpc2 = topology.define_network(web_tier(2, "10.7.11.0/24"))
    topology.peer(vpc1, vpc2)

    plan = topology.emit()
    print(plan.to_json())


if __name__ == "__main__":
    main()
