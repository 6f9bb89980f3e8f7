"""
Basic grant store usage example.

This example demonstrates the fundamental grant store operations:
- Storing grants for a subject
- Reading grants by key and by subject
- Revoking a single grant
- Revoking all grants of a client
"""

import asyncio
import logging
from datetime import timedelta

from grantstore import (
    CompositeObserver,
    GrantType,
    LoggingObserver,
    MetricsObserver,
    PersistedGrant,
    create_memory_store,
)
from grantstore.utils import get_current_time


async def basic_example():
    """Demonstrate basic grant store usage"""
    print("Basic Grant Store Example")
    print("=" * 30)

    # 1. Create an in-memory store that logs and counts every operation
    metrics = MetricsObserver()
    store = create_memory_store(observer=CompositeObserver([LoggingObserver(), metrics]))
    print("✓ Created grant store")

    now = get_current_time()
    grants = [
        PersistedGrant(
            key="rt-1", type=GrantType.REFRESH_TOKEN, subject_id="alice",
            client_id="web-app", creation_time=now, expiration=now + timedelta(days=30),
            data={"scopes": ["openid", "offline_access"]},
        ),
        PersistedGrant(
            key="consent-1", type=GrantType.USER_CONSENT, subject_id="alice",
            client_id="web-app", creation_time=now, expiration=now + timedelta(days=365),
            data={"scopes": ["openid", "profile"]},
        ),
        PersistedGrant(
            key="code-1", type=GrantType.AUTHORIZATION_CODE, subject_id="alice",
            client_id="mobile-app", creation_time=now, expiration=now + timedelta(minutes=5),
        ),
    ]

    try:
        # 2. Store grants
        for grant in grants:
            await store.store(grant)
        print(f"✓ Stored {len(grants)} grants for alice")

        # 3. Read by key and by subject
        grant = await store.get("rt-1")
        print(f"✓ Found {grant.type} for client {grant.client_id}")

        all_grants = await store.get_all("alice")
        print(f"✓ alice holds {len(all_grants)} grants")

        # 4. Revoke a single grant
        await store.remove("code-1")
        print(f"✓ Revoked code-1, found again: {await store.get('code-1') is not None}")

        # 5. Revoke everything issued to one client
        await store.remove_all("alice", "web-app")
        remaining = await store.get_all("alice")
        print(f"✓ Revoked web-app grants, {len(remaining)} grants remain")

        for name, metric in metrics.collector.get_all_metrics().items():
            print(f"  {name} = {metric.value:g}")

    finally:
        await store.close()
        print("✓ Closed grant store")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(basic_example())
