from .shipment import (
    ShipmentCreate,
    ShipmentUpdate,
    ShipmentResponse,
    ShipmentListResponse,
    PostArrivalShipment,
    WorkflowState,
    StartInspectionRequest,
    CompleteInspectionRequest,
    StartReceivingRequest,
    CompleteReceivingRequest,
    RejectShipmentRequest,
    RejectArchivedResponse,
)
from .archive import (
    ArchiveSummary,
    ArchiveDetail,
    ArchiveStats,
    ArchiveRenameRequest,
    ArchiveRenameResponse,
    ArchiveUpdateRequest,
    ManualArchiveRequest,
    ManualArchiveResponse,
    AutoArchiveRequest,
    AutoArchiveResponse,
)
from .cost_estimate import (
    ProductLine,
    CostEstimateCreate,
    CostEstimateUpdate,
    CostEstimateResponse,
    CostEstimateListResponse,
    SendEstimateEmailRequest,
    LinkShipmentRequest,
    ManualRateRequest,
    ExchangeRateResponse,
    SupplierCostRow,
)
from .quote import (
    QuoteFile,
    ForwarderQuoteCount,
    QuoteUploadResponse,
    QuoteRenameRequest,
    QuoteRenameResponse,
    QuoteCompareRequest,
)
from .supplier import SupplierCreate, SupplierResponse

__all__ = [
    "ShipmentCreate",
    "ShipmentUpdate",
    "ShipmentResponse",
    "ShipmentListResponse",
    "PostArrivalShipment",
    "WorkflowState",
    "StartInspectionRequest",
    "CompleteInspectionRequest",
    "StartReceivingRequest",
    "CompleteReceivingRequest",
    "RejectShipmentRequest",
    "RejectArchivedResponse",
    "ArchiveSummary",
    "ArchiveDetail",
    "ArchiveStats",
    "ArchiveRenameRequest",
    "ArchiveRenameResponse",
    "ArchiveUpdateRequest",
    "ManualArchiveRequest",
    "ManualArchiveResponse",
    "AutoArchiveRequest",
    "AutoArchiveResponse",
    "ProductLine",
    "CostEstimateCreate",
    "CostEstimateUpdate",
    "CostEstimateResponse",
    "CostEstimateListResponse",
    "SendEstimateEmailRequest",
    "LinkShipmentRequest",
    "ManualRateRequest",
    "ExchangeRateResponse",
    "SupplierCostRow",
    "QuoteFile",
    "ForwarderQuoteCount",
    "QuoteUploadResponse",
    "QuoteRenameRequest",
    "QuoteRenameResponse",
    "QuoteCompareRequest",
    "SupplierCreate",
    "SupplierResponse",
]
