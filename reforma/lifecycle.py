"""Job lifecycle: create, update, estimate/WO save, close, reopen, delete"""
from dataclasses import asdict, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger

from config import (
    JOBS_COLLECTION, MANAGER_ROLES, MESSAGES, DEFAULT_LANGUAGE, PRIVATE_INSURANCE,
    DEFAULT_VEHICLE_POSITION, VEHICLE_WAITING_ESTIMATE, VEHICLE_WAITING_INSURANCE_SPK,
    VEHICLE_IN_PROGRESS, VEHICLE_FINISHED, WORK_NOT_STARTED, WORK_FINISHING, WORK_FINISHED,
)
from .errors import AuthorizationError, PersistenceError, ReformaError, ValidationError
from .ledger_store import LedgerStore, Record
from .models import CostData, EstimateData, Job, SaveType, Settings
from .numbering import next_number_for

Notifier = Callable[[str, str], None]


class _Unset:
    """Marks a field the caller left untouched; never written to the store"""

    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False


UNSET = _Unset()


class CloseConfirmation(Enum):
    CONFIRM = 'confirm'    # plain "are you sure"
    OVERRIDE = 'override'  # explicit acknowledgement that no cost was posted


def clean_updates(value: Any) -> Any:
    """Recursively drop UNSET values; None stays as an explicit null"""
    if isinstance(value, dict):
        return {k: clean_updates(v) for k, v in value.items() if v is not UNSET}
    if isinstance(value, list):
        return [clean_updates(v) for v in value if v is not UNSET]
    return value


def format_police_number(value: str) -> str:
    """Plate numbers are stored without spaces, upper-cased"""
    return ''.join(str(value or '').split()).upper()


def log_notifier(message: str, level: str = 'success') -> None:
    """Default notifier: user-facing messages go to the log"""
    if level == 'error':
        logger.error(message)
    elif level == 'warning':
        logger.warning(message)
    else:
        logger.info(message)


class JobLifecycleController:
    """
    Applies user intent to jobs in the ledger store.

    The controller keeps the latest jobs snapshot pushed by the store's live
    feed and reads it for number generation and invariant checks. It never
    edits that snapshot itself; the store feed is the source of truth.

    Store failures are logged, reported through ``notifier`` with a fixed
    localized message and re-raised where the caller needs the result
    (create, update, save_estimate). Close, reopen and delete report and
    return None/False instead. Nothing is retried.
    """

    def __init__(self, store: LedgerStore, settings: Optional[Settings] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 notifier: Optional[Notifier] = None, user_name: str = ""):
        self.store = store
        self.settings = settings or store.load_settings()
        self.clock = clock or datetime.now
        self.notifier = notifier or log_notifier
        self.user_name = user_name
        self._jobs: List[Job] = []
        self._unsubscribe = store.subscribe(JOBS_COLLECTION, self._on_jobs)

    # ============ SNAPSHOT ============

    def _on_jobs(self, docs: List[Record]) -> None:
        self._jobs = [Job.from_dict(doc) for doc in docs if doc.get('id')]

    @property
    def jobs(self) -> List[Job]:
        return list(self._jobs)

    def find_job(self, job_id: str) -> Optional[Job]:
        for job in self._jobs:
            if job.id == job_id:
                return job
        return None

    def close(self) -> None:
        """Stop listening to the store"""
        self._unsubscribe()

    def _msg(self, key: str, **kwargs) -> str:
        messages = MESSAGES.get(self.settings.language, MESSAGES[DEFAULT_LANGUAGE])
        return messages[key].format(**kwargs)

    # ============ CREATE ============

    def _new_job_record(self, fields: Dict[str, Any], status_kendaraan: str,
                        status_pekerjaan: str) -> Record:
        """Validate intake fields and build a fresh, zeroed job document"""
        fields = clean_updates(dict(fields))
        police_number = format_police_number(fields.get('police_number', ''))
        customer_name = str(fields.get('customer_name') or '').strip()
        if not police_number or not customer_name:
            raise ValidationError("police_number and customer_name are required",
                                  user_message=self._msg('missing_identity'))

        record = Job().to_dict()
        record.update(fields)
        record.pop('id', None)
        record.update(
            police_number=police_number,
            customer_name=customer_name,
            status_kendaraan=status_kendaraan,
            status_pekerjaan=status_pekerjaan,
            posisi_kendaraan=record.get('posisi_kendaraan') or DEFAULT_VEHICLE_POSITION,
            estimate_data=EstimateData().to_dict(),
            cost_data=asdict(CostData()),
            harga_jasa=0.0,
            harga_part=0.0,
            is_closed=False,
            closed_at=None,
            created_at=self.store.now(),
        )
        if not record.get('tanggal_masuk'):
            record['tanggal_masuk'] = self.clock().date().isoformat()
        return record

    def _persist_new(self, record: Record) -> str:
        try:
            job_id = self.store.create(JOBS_COLLECTION, record)
        except PersistenceError:
            logger.exception(f"Creating job {record.get('police_number')} failed")
            self.notifier(self._msg('save_failed'), 'error')
            raise
        logger.info(f"Created job {job_id} ({record.get('police_number')})")
        return job_id

    def _create(self, fields: Dict[str, Any], status_kendaraan: str,
                status_pekerjaan: str) -> Tuple[Record, str]:
        try:
            record = self._new_job_record(fields, status_kendaraan, status_pekerjaan)
        except ValidationError as e:
            self.notifier(e.user_message, 'error')
            raise
        return record, self._persist_new(record)

    def create_job(self, fields: Dict[str, Any]) -> str:
        """Create a draft job and return its id"""
        _, job_id = self._create(
            fields,
            status_kendaraan=fields.get('status_kendaraan') or VEHICLE_WAITING_ESTIMATE,
            status_pekerjaan=fields.get('status_pekerjaan') or WORK_NOT_STARTED,
        )
        self.notifier(self._msg('job_created'), 'success')
        return job_id

    def create_and_open_estimate(self, vehicle_fields: Dict[str, Any],
                                 open_estimate: Callable[[Job], None]) -> Job:
        """Create an in-progress job and hand it straight to the estimate editor"""
        fields = {k: v for k, v in vehicle_fields.items()
                  if k not in ('status_kendaraan', 'status_pekerjaan')}
        record, job_id = self._create(fields, VEHICLE_IN_PROGRESS, WORK_NOT_STARTED)
        job = self.find_job(job_id) or Job.from_dict({**record, 'id': job_id})
        open_estimate(job)
        return job

    # ============ UPDATE ============

    def _guard_numbers(self, job_id: str, payload: Record) -> None:
        """Issued WO and estimation numbers are never reassigned"""
        job = self.find_job(job_id)
        if job is None:
            return

        if job.wo_number and 'wo_number' in payload and payload['wo_number'] != job.wo_number:
            raise ValidationError(f"Job {job_id} already has WO number {job.wo_number}")

        estimate = payload.get('estimate_data')
        current = job.estimate_data.estimation_number
        if current and isinstance(estimate, dict):
            proposed = estimate.get('estimation_number')
            if proposed and proposed != current:
                raise ValidationError(f"Job {job_id} already has estimation number {current}")
            # A replaced estimate keeps its number
            payload['estimate_data'] = {**estimate, 'estimation_number': current}

    def update_job(self, job_id: str, updates: Dict[str, Any]) -> Record:
        """Merge the given fields into a job; UNSET values are left out"""
        payload = clean_updates(dict(updates))
        payload.pop('id', None)
        self._guard_numbers(job_id, payload)
        try:
            result = self.store.update(JOBS_COLLECTION, job_id, payload)
        except PersistenceError:
            logger.exception(f"Updating job {job_id} failed")
            self.notifier(self._msg('update_failed'), 'error')
            raise
        self.notifier(self._msg('job_updated'), 'success')
        return result

    # ============ ESTIMATE / WO ============

    def save_estimate(self, job_id: Optional[str], estimate: Union[EstimateData, Dict[str, Any]],
                      save_type: SaveType, draft: Optional[Job] = None,
                      acting_user: str = "") -> str:
        """
        Save an estimate and, for ``save_type == 'wo'``, issue the work order.

        Numbers are resolved against the current jobs snapshot: an
        estimation number when the estimate has none, a WO number when a WO
        is requested and the job has none yet. Issuing the WO moves the job
        from draft to active. The advisor is filled in only while unassigned.

        With ``job_id=None`` the ``draft`` job is created together with its
        estimate.

        Returns the WO number for a WO save, otherwise the estimation number.
        """
        failure_message = self._msg('save_failed')
        try:
            if save_type not in ('estimate', 'wo'):
                raise ValidationError(f"Unknown save type: {save_type!r}")
            if not isinstance(estimate, EstimateData):
                estimate = EstimateData.from_dict(estimate)

            if job_id:
                job = self.find_job(job_id)
                if job is None:
                    raise ValidationError(f"Job {job_id} not found")
            elif draft is not None:
                job = draft
            else:
                raise ValidationError("save_estimate needs a job id or a draft job")

            # An issued estimation number is never reassigned
            current = job.estimate_data.estimation_number
            if current and estimate.estimation_number and estimate.estimation_number != current:
                raise ValidationError(f"Job {job_id} already has estimation number {current}")

            today = self.clock().date()
            estimation_number = (current
                                 or estimate.estimation_number
                                 or next_number_for('BE', self._jobs, today))

            new_wo_number = None
            if save_type == 'wo' and not job.wo_number:
                new_wo_number = next_number_for('WO', self._jobs, today)

            estimate = replace(estimate, estimation_number=estimation_number)
            payload: Record = {
                'estimate_data': estimate.to_dict(),
                'harga_jasa': estimate.subtotal_jasa,
                'harga_part': estimate.subtotal_part,
                'updated_at': self.store.now(),
            }

            if (save_type == 'estimate' and job.nama_asuransi != PRIVATE_INSURANCE
                    and job.status_kendaraan == VEHICLE_WAITING_ESTIMATE):
                payload['status_kendaraan'] = VEHICLE_WAITING_INSURANCE_SPK

            if new_wo_number:
                payload['wo_number'] = new_wo_number
                payload['status_kendaraan'] = VEHICLE_IN_PROGRESS
                payload['status_pekerjaan'] = WORK_NOT_STARTED

            if not job.advisor_assigned:
                advisor = estimate.estimator_name or acting_user or self.user_name
                if advisor:
                    payload['nama_sa'] = advisor

            if job_id:
                self.store.update(JOBS_COLLECTION, job_id, payload)
            else:
                try:
                    record = self._new_job_record(job.to_dict(),
                                                  job.status_kendaraan or VEHICLE_WAITING_ESTIMATE,
                                                  job.status_pekerjaan or WORK_NOT_STARTED)
                except ValidationError as e:
                    failure_message = e.user_message
                    raise
                record.update(payload)
                job_id = self.store.create(JOBS_COLLECTION, record)
                logger.info(f"Created job {job_id} ({record.get('police_number')})")
        except ReformaError:
            logger.exception(f"Saving estimate for job {job_id or '(draft)'} failed")
            self.notifier(failure_message, 'error')
            raise

        if save_type == 'wo':
            wo_number = new_wo_number or job.wo_number
            logger.info(f"Job {job_id}: WO {wo_number}")
            self.notifier(self._msg('wo_issued', number=wo_number), 'success')
            return wo_number

        logger.info(f"Job {job_id}: estimate {estimation_number} saved")
        self.notifier(self._msg('estimate_saved'), 'success')
        return estimation_number

    # ============ CLOSE / REOPEN / DELETE ============

    @staticmethod
    def close_requirement(job: Job) -> CloseConfirmation:
        """Closing a WO with no posted cost needs an explicit override"""
        if job.cost_data.total > 0:
            return CloseConfirmation.CONFIRM
        return CloseConfirmation.OVERRIDE

    def close_prompt(self, job: Job) -> str:
        if self.close_requirement(job) is CloseConfirmation.OVERRIDE:
            return self._msg('confirm_close_no_cost', number=job.wo_number)
        return self._msg('confirm_close', number=job.wo_number)

    def close_job(self, job: Union[Job, Record],
                  confirmation: Optional[CloseConfirmation] = None) -> Optional[Record]:
        """
        Finalize a WO: is_closed, both statuses finished, closed_at stamped.

        Raises ValidationError when the confirmation is missing or weaker than
        close_requirement() asks for. Returns the stored job, or None when
        the store write failed.
        """
        if isinstance(job, dict):
            job = Job.from_dict(job)
        required = self.close_requirement(job)
        if confirmation is None or (required is CloseConfirmation.OVERRIDE
                                    and confirmation is not CloseConfirmation.OVERRIDE):
            raise ValidationError(f"Closing job {job.id} needs {required.value} confirmation",
                                  user_message=self.close_prompt(job))

        payload = {
            'is_closed': True,
            'closed_at': self.store.now(),
            'status_kendaraan': VEHICLE_FINISHED,
            'status_pekerjaan': WORK_FINISHED,
        }
        try:
            result = self.store.update(JOBS_COLLECTION, job.id, payload)
        except PersistenceError:
            logger.exception(f"Closing job {job.id} failed")
            self.notifier(self._msg('close_failed'), 'error')
            return None
        logger.info(f"Closed job {job.id} ({job.wo_number})")
        self.notifier(self._msg('close_success'), 'success')
        return result

    def reopen_job(self, job: Union[Job, Record], acting_role: str) -> Optional[Record]:
        """
        Return a closed WO to active. Manager only.

        The pre-close statuses are not kept, so work resumes at Finishing.
        """
        if isinstance(job, dict):
            job = Job.from_dict(job)
        if acting_role not in MANAGER_ROLES:
            message = self._msg('reopen_forbidden')
            self.notifier(message, 'error')
            raise AuthorizationError(f"Role {acting_role!r} cannot reopen job {job.id}",
                                     role=acting_role, user_message=message)

        payload = {
            'is_closed': False,
            'closed_at': None,
            'status_pekerjaan': WORK_FINISHING,
            'status_kendaraan': VEHICLE_IN_PROGRESS,
        }
        try:
            result = self.store.update(JOBS_COLLECTION, job.id, payload)
        except PersistenceError:
            logger.exception(f"Reopening job {job.id} failed")
            self.notifier(self._msg('reopen_failed'), 'error')
            return None
        logger.info(f"Reopened job {job.id} ({job.wo_number}) by {acting_role}")
        self.notifier(self._msg('reopen_success'), 'success')
        return result

    def delete_job(self, job: Union[Job, Record]) -> bool:
        """Hard delete; the is_deleted flag is not touched here"""
        job_id = job['id'] if isinstance(job, dict) else job.id
        try:
            removed = self.store.delete(JOBS_COLLECTION, job_id)
        except PersistenceError:
            logger.exception(f"Deleting job {job_id} failed")
            self.notifier(self._msg('delete_failed'), 'error')
            return False
        if removed:
            self.notifier(self._msg('delete_success'), 'success')
        return removed
