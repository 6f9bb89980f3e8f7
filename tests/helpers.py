"""
Test helpers for building grants against a controllable clock.
"""

from datetime import datetime, timedelta

from grantstore import PersistedGrant


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_grant(clock, key="k1", subject_id="u1", client_id="c1",
               grant_type="refresh_token", expires_in=3600, data=None):
    """Build a grant expiring ``expires_in`` seconds after the clock's time"""
    return PersistedGrant(
        key=key,
        type=grant_type,
        subject_id=subject_id,
        client_id=client_id,
        creation_time=clock(),
        expiration=clock() + timedelta(seconds=expires_in),
        data=data if data is not None else {"scopes": ["openid", "offline_access"]},
    )
