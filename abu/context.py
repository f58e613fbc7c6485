"""Runtime context shared by report flows.

Everything a report needs from the outside world is resolved once at startup
and handed over explicitly: the application config, the cost source used for
all remote queries, and the currency conversion rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .adapters import CostSource
from .config.models import AppConfig
from .domain.utils.units import ConversionRate


@dataclass(frozen=True)
class RuntimeContext:
    """Immutable per-invocation dependencies.

    Attributes
    ----------
    config: AppConfig
        Validated application configuration.
    source: CostSource
        Backend executing catalog and cost queries.
    rate: ConversionRate
        Base-to-reporting currency rate fixed for the invocation.
    switch_role_name: Optional[str]
        Role used by console role-switch URLs.
    """

    config: AppConfig
    source: CostSource
    rate: ConversionRate
    switch_role_name: Optional[str] = None
