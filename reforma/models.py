"""Data models for ReForma Workshop"""
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, List, Literal, Optional

from config import DEFAULT_SETTINGS, UNASSIGNED_ADVISOR

SaveType = Literal['estimate', 'wo']
TransactionType = Literal['IN', 'OUT']


def _num(value: Any) -> float:
    """Coerce a stored numeric value; blanks and junk become 0"""
    if value is None or value == '' or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _flag(value: Any) -> bool:
    # Sheets hand booleans back as strings
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


def _known(cls, data: Any) -> Dict[str, Any]:
    # Cells that failed to decode arrive as plain strings
    if not isinstance(data, dict):
        return {}
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _dicts(value: Any) -> List[Dict[str, Any]]:
    """Keep only the dict entries of a stored list"""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class EstimateItem:
    """One jasa (labour) or part line on an estimate"""
    name: str = ""
    price: float = 0.0
    qty: float = 1.0
    panel_count: float = 0.0
    work_type: str = ""
    has_arrived: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EstimateItem':
        data = _known(cls, data)
        for key in ('price', 'panel_count'):
            data[key] = _num(data.get(key))
        data['qty'] = _num(data['qty']) if data.get('qty') not in (None, '') else 1.0
        data['has_arrived'] = _flag(data.get('has_arrived', False))
        return cls(**data)


@dataclass
class EstimateData:
    estimation_number: str = ""
    jasa_items: List[EstimateItem] = field(default_factory=list)
    part_items: List[EstimateItem] = field(default_factory=list)
    discount_jasa: float = 0.0
    discount_part: float = 0.0
    ppn_amount: float = 0.0
    subtotal_jasa: float = 0.0
    subtotal_part: float = 0.0
    grand_total: float = 0.0
    estimator_name: str = ""

    @property
    def panel_total(self) -> float:
        return sum(item.panel_count for item in self.jasa_items)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EstimateData':
        data = _known(cls, data)
        data['jasa_items'] = [EstimateItem.from_dict(i) for i in _dicts(data.get('jasa_items'))]
        data['part_items'] = [EstimateItem.from_dict(i) for i in _dicts(data.get('part_items'))]
        for key in ('discount_jasa', 'discount_part', 'ppn_amount',
                    'subtotal_jasa', 'subtotal_part', 'grand_total'):
            data[key] = _num(data.get(key))
        data['estimation_number'] = str(data.get('estimation_number') or "")
        data['estimator_name'] = str(data.get('estimator_name') or "")
        return cls(**data)


@dataclass
class CostData:
    """Realized cost components, posted by the cost-entry screens"""
    harga_modal_bahan: float = 0.0  # material
    harga_beli_part: float = 0.0    # parts purchase
    jasa_external: float = 0.0      # sublet

    @property
    def total(self) -> float:
        return self.harga_modal_bahan + self.harga_beli_part + self.jasa_external

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CostData':
        return cls(**{k: _num(v) for k, v in _known(cls, data).items()})


@dataclass
class MechanicAssignment:
    name: str
    stage: str = ""
    assigned_at: str = ""
    panel_count: float = 0.0


@dataclass
class ProductionLog:
    stage: str
    timestamp: Any = None
    user: str = ""
    note: str = ""
    type: Literal['progress', 'rework'] = 'progress'


@dataclass
class Job:
    """A repair work order, from draft estimate to closed WO"""
    id: str = ""
    police_number: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    customer_kota: str = ""
    car_brand: str = ""
    car_model: str = ""
    warna_mobil: str = ""
    nama_asuransi: str = ""
    unit_id: str = ""

    status_kendaraan: str = ""
    status_pekerjaan: str = ""
    posisi_kendaraan: str = ""
    tanggal_masuk: str = ""  # ISO date YYYY-MM-DD

    wo_number: str = ""
    # None means no advisor has been allocated yet
    nama_sa: Optional[str] = None
    assigned_mechanics: List[MechanicAssignment] = field(default_factory=list)
    production_logs: List[ProductionLog] = field(default_factory=list)

    estimate_data: EstimateData = field(default_factory=EstimateData)
    harga_jasa: float = 0.0
    harga_part: float = 0.0
    cost_data: CostData = field(default_factory=CostData)

    is_closed: bool = False
    closed_at: Optional[str] = None
    has_invoice: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_deleted: bool = False

    # CRC / admin contact tracking
    crc_follow_up_status: str = ""
    # CSI survey: overall 1-5 rating (0 = not rated) and per-indicator scores
    customer_rating: float = 0.0
    customer_feedback: str = ""
    csi_results: Dict[str, float] = field(default_factory=dict)
    is_booking_contacted: bool = False
    booking_success: bool = False
    is_service_contacted: bool = False
    is_pickup_contacted: bool = False
    pickup_success: bool = False

    @property
    def revenue(self) -> float:
        return self.harga_jasa + self.harga_part

    @property
    def advisor_assigned(self) -> bool:
        return self.nama_sa is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        data = _known(cls, dict(data))
        data['estimate_data'] = EstimateData.from_dict(data.get('estimate_data'))
        data['cost_data'] = CostData.from_dict(data.get('cost_data'))
        data['assigned_mechanics'] = [
            MechanicAssignment(**_known(MechanicAssignment, m))
            for m in _dicts(data.get('assigned_mechanics')) if m.get('name')
        ]
        data['production_logs'] = [
            ProductionLog(**_known(ProductionLog, log))
            for log in _dicts(data.get('production_logs')) if 'stage' in log
        ]
        data['harga_jasa'] = _num(data.get('harga_jasa'))
        data['harga_part'] = _num(data.get('harga_part'))
        for key in ('is_closed', 'has_invoice', 'is_deleted', 'is_booking_contacted',
                    'booking_success', 'is_service_contacted', 'is_pickup_contacted',
                    'pickup_success'):
            data[key] = _flag(data.get(key, False))

        # Handle legacy sentinel and blanks for the advisor
        nama_sa = str(data.get('nama_sa') or '').strip()
        data['nama_sa'] = None if nama_sa in ('', UNASSIGNED_ADVISOR) else nama_sa

        for key in ('closed_at', 'created_at', 'updated_at'):
            if data.get(key) == '':
                data[key] = None
        data['wo_number'] = str(data.get('wo_number') or "")
        data['customer_rating'] = _num(data.get('customer_rating'))
        csi_results = data.get('csi_results')
        data['csi_results'] = (
            {str(k): _num(v) for k, v in csi_results.items()} if isinstance(csi_results, dict) else {}
        )
        return cls(**data)


@dataclass
class CashierTransaction:
    """An immutable cash movement"""
    id: str = ""
    type: TransactionType = 'IN'
    amount: float = 0.0
    date: Any = None
    category: str = ""
    description: str = ""
    payment_method: str = ""
    ref_job_id: str = ""
    ref_po_id: str = ""
    created_by: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CashierTransaction':
        data = _known(cls, dict(data))
        data['amount'] = _num(data.get('amount'))
        data['type'] = str(data.get('type') or 'IN').upper()
        for key in ('category', 'description', 'ref_job_id', 'ref_po_id'):
            data[key] = data.get(key) or ""
        return cls(**data)


@dataclass
class Asset:
    """A depreciable fixed asset"""
    id: str = ""
    name: str = ""
    category: str = ""
    purchase_price: float = 0.0
    purchase_date: Any = None
    useful_life_years: float = 0.0
    monthly_depreciation: float = 0.0
    status: str = 'Active'

    @property
    def is_active(self) -> bool:
        return self.status == 'Active'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Asset':
        data = _known(cls, dict(data))
        for key in ('purchase_price', 'useful_life_years', 'monthly_depreciation'):
            data[key] = _num(data.get(key))
        data['status'] = data.get('status') or 'Active'
        return cls(**data)


@dataclass
class Settings:
    """Workshop-wide configuration, passed explicitly into analytics"""
    monthly_target: float = DEFAULT_SETTINGS['monthly_target']
    weekly_target: float = DEFAULT_SETTINGS['weekly_target']
    mechanic_names: List[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS['mechanic_names']))
    service_advisors: List[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS['service_advisors']))
    status_kendaraan_options: List[str] = field(
        default_factory=lambda: list(DEFAULT_SETTINGS['status_kendaraan_options']))
    status_pekerjaan_options: List[str] = field(
        default_factory=lambda: list(DEFAULT_SETTINGS['status_pekerjaan_options']))
    role_options: List[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS['role_options']))
    csi_indicators: List[str] = field(default_factory=lambda: list(DEFAULT_SETTINGS['csi_indicators']))
    language: str = DEFAULT_SETTINGS['language']

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Settings':
        # Drop blanks so the defaults apply
        data = {k: v for k, v in _known(cls, data).items() if v not in (None, '')}
        for key in ('monthly_target', 'weekly_target'):
            if key in data:
                data[key] = _num(data[key])
        return cls(**data)
