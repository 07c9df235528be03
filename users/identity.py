"""Identity lookup backed by the User model."""

import logging
from typing import Optional

from rewards.interfaces import UserIdentity
from users.models import User

logger = logging.getLogger(__name__)


def to_identity(user: User) -> UserIdentity:
    return UserIdentity(
        user_guid=str(user.pk),
        phone_number_hash=user.phone_number_hash,
        eth_wallet=user.eth_wallet or "",
        flagged=user.should_fail_rewards,
    )


class DjangoIdentityLookup:
    """Resolves user guids to UserIdentity values, soft-deleted users included."""

    def single(self, user_guid) -> Optional[UserIdentity]:
        try:
            pk = int(user_guid)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric user guid %r", user_guid)
            return None

        user = User.all_objects.filter(pk=pk).first()
        if user is None:
            return None
        return to_identity(user)
