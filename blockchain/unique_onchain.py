"""
Registry of on-chain addresses users have proven they own.
"""
import logging
from typing import Iterator

from rewards.interfaces import OnChainRegistration, UserIdentity

from .models import UniqueOnChainAddress

logger = logging.getLogger(__name__)


class UniqueOnChainManager:
    """Default on-chain registry backed by UniqueOnChainAddress rows."""

    def get_all(self) -> Iterator[OnChainRegistration]:
        queryset = UniqueOnChainAddress.objects.order_by('id').values_list('user_id', 'address')
        for user_id, address in queryset.iterator():
            yield OnChainRegistration(user_guid=str(user_id), address=address)

    def is_unique(self, user: UserIdentity) -> bool:
        """
        A user is unique on-chain when it registered its currently linked
        wallet and no other user registered the same address.
        """
        wallet = (user.eth_wallet or '').strip()
        if not wallet:
            return False

        owners = set(
            UniqueOnChainAddress.objects.filter(address__iexact=wallet).values_list('user_id', flat=True)
        )
        if {str(owner) for owner in owners} != {str(user.user_guid)}:
            if len(owners) > 1:
                logger.info(
                    "Address %s is registered by %s users; not unique",
                    wallet,
                    len(owners),
                )
            return False
        return True
