"""
Carrier Pool Router - decides which carriers may bid on a tender.

Pools are matched on lane type and service level, ordered by pool priority
(lower number first), and flattened into a de-duplicated carrier list.
"""

from typing import Any, Optional

from tendering.core.errors import NoEligibleCarriers
from tendering.data.models.carrier import CarrierPool
from tendering.data.models.tender import TenderLoad
from tendering.engine.base import EngineComponent


class CarrierPoolRouter(EngineComponent):
    """Resolves eligible carriers from the configured carrier pools."""

    def __init__(self, pools: Optional[list[CarrierPool]] = None, **kwargs: Any) -> None:
        """
        Initialize the router.

        Args:
            pools: Carrier pools to route over. Defaults to the configured pools.
        """
        super().__init__(component_name="pool_router", **kwargs)
        self.pools = list(pools) if pools is not None else self.config_manager.get_carrier_pools()

    def matching_pools(self, tender: TenderLoad) -> list[CarrierPool]:
        """Auto-tender pools serving the tender's lane and services, best priority first."""
        matches = [
            pool
            for pool in self.pools
            if pool.auto_tender and pool.serves(tender.load_type, tender.required_service_levels)
        ]
        # stable: equal priorities keep configuration order
        return sorted(matches, key=lambda pool: pool.priority)

    def resolve_eligible_carriers(self, tender: TenderLoad) -> list[str]:
        """
        Resolve the ordered list of carriers eligible to bid.

        Args:
            tender: Tender being sent

        Returns:
            Carrier ids in pool-priority order, without duplicates

        Raises:
            NoEligibleCarriers: If no pool (or no carrier) matches
        """
        carriers: list[str] = []
        seen: set[str] = set()
        pools = self.matching_pools(tender)
        for pool in pools:
            for carrier_id in pool.carrier_ids:
                if carrier_id not in seen:
                    seen.add(carrier_id)
                    carriers.append(carrier_id)

        if not carriers:
            raise NoEligibleCarriers(
                tender.tender_id,
                tender.load_type.value,
                [level.value for level in tender.required_service_levels],
            )

        self.logger.info(
            "carriers_resolved",
            tender_id=tender.tender_id,
            pools=[pool.pool_id for pool in pools],
            carrier_count=len(carriers),
        )
        return carriers
