from .shipment import Shipment, ShipmentStatus
from .archive import Archive, ArchiveKind
from .supplier import Supplier
from .cost_estimate import CostEstimate, EstimateStatus
from .exchange_rate import ExchangeRate

__all__ = [
    "Shipment",
    "ShipmentStatus",
    "Archive",
    "ArchiveKind",
    "Supplier",
    "CostEstimate",
    "EstimateStatus",
    "ExchangeRate",
]
