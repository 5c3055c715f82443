"""Cache key builders: the only place cache keys are spelled.

Every key starts with its scope ("customer:{id}:", "consultant:{id}:",
"platform:") so that one prefix invalidation clears everything computed
for that scope. Scope prefixes end with ":" so "customer:1:" never
matches "customer:12:...".
"""

PLATFORM_SCOPE = "platform:"


def customer_scope(customer_id: str) -> str:
    return f"customer:{customer_id}:"


def consultant_scope(consultant_id: str) -> str:
    return f"consultant:{consultant_id}:"


def customer_dashboard(customer_id: str, bucket: str) -> str:
    return f"{customer_scope(customer_id)}dashboard:{bucket}"


def consultant_dashboard(consultant_id: str, bucket: str) -> str:
    return f"{consultant_scope(consultant_id)}dashboard:{bucket}"


def client_snapshot(consultant_id: str, customer_id: str) -> str:
    return f"{consultant_scope(consultant_id)}client:{customer_id}:snapshot"


def client_profile(consultant_id: str, customer_id: str) -> str:
    return f"{consultant_scope(consultant_id)}client:{customer_id}:profile"


def platform_dashboard(bucket: str) -> str:
    return f"{PLATFORM_SCOPE}dashboard:{bucket}"


def net_worth_evolution(customer_id: str, bucket: str, months: int) -> str:
    return f"{customer_scope(customer_id)}net-worth:{bucket}:{months}"
