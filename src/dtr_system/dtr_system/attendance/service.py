from __future__ import annotations

from datetime import date
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.logging import get_logger
from ..common.validators import optional_text, require_int_range, require_non_empty
from ..core.constants import EMPTY_HISTORY_VALUE, MAX_YEAR, MIN_YEAR, STATUS_ABSENT, STATUS_EXCUSED
from ..core.enums import ConfirmationStatus, ExcusedStatus, RecordStatus
from ..core.exceptions import (
    ConflictError,
    ImmutableStateError,
    NotFoundError,
    StaleRecordError,
    ValidationError,
)
from ..notifications.dispatcher import Notifier, dispatch_safely
from ..schedules.builder import build_schedule_map
from ..schedules.model import ScheduleMap
from ..schedules.repository import ScheduleResolver
from ..schedules.timeparse import optional_time
from ..totals.calculator.base import MonthlyTotalCalculator
from ..totals.calculator.capped_calculator import CappedConfirmedCalculator
from ..users.model import Actor
from .model import LEGACY_FIELD_RE, AttendanceRecord, DayEntry, EditRecord, FieldChange, ShiftPair
from .reconcile import ReconciliationResult, Reconciler
from .repository import DTRRepository

log = get_logger(__name__)

_NUMBER_FIELDS = {"late": "Late", "undertime": "Undertime", "total_minutes": "Total minutes"}
_MAX_DAY_MINUTES = 24 * 60


def _history_value(value: Optional[str]) -> str:
    return value if value else EMPTY_HISTORY_VALUE


def _tracked_keys(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[str]:
    """in1, out1, ... over the wider snapshot, then status."""
    pairs = max(int(m.group(2)) for m in map(LEGACY_FIELD_RE.match, {**before, **after}) if m)
    return [f"{side}{n}" for n in range(1, pairs + 1) for side in ("in", "out")] + ["status"]


def _parse_shift_list(value: list) -> list[ShiftPair]:
    pairs = []
    for item in value:
        if not isinstance(item, Mapping):
            raise ValidationError("Each shift must be an object with in/out")
        raw = ShiftPair.from_dict(item)
        pairs.append(ShiftPair(optional_time(raw.time_in, "in"), optional_time(raw.time_out, "out")))
    return pairs


def _parse_confirmation(value: Any) -> ConfirmationStatus:
    try:
        return ConfirmationStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid confirmation status: {value}")


def _trim_shifts(shifts: list[ShiftPair]) -> list[ShiftPair]:
    out = list(shifts)
    while out and out[-1].is_empty:
        out.pop()
    return out


class DTRService:
    """Monthly DTR workflow: entry edits, confirmation, exceptions and lifecycle."""

    def __init__(
        self,
        dtrs: DTRRepository,
        schedules: Optional[ScheduleResolver] = None,
        *,
        calculator: Optional[MonthlyTotalCalculator] = None,
        reconciler: Optional[Reconciler] = None,
        notifier: Optional[Notifier] = None,
        clock: Callable = now_local,
    ):
        self._dtrs = dtrs
        self._schedules = schedules
        self._calculator = calculator or CappedConfirmedCalculator()
        self._reconciler = reconciler or Reconciler()
        self._notifier = notifier
        self._clock = clock

    def get(self, dtr_id: int) -> AttendanceRecord:
        record = self._dtrs.get_by_id(int(dtr_id))
        if not record:
            raise NotFoundError("DTR not found")
        return record

    def list_for_user(self, user_id: int) -> list[AttendanceRecord]:
        return list(self._dtrs.list_for_user(int(user_id)))

    def _save(self, record: AttendanceRecord) -> None:
        record.total_monthly_minutes = self._calculator.monthly_minutes(record.entries)
        try:
            self._dtrs.save(record)
        except StaleRecordError:
            log.warning("dtr_stale_write", dtr_id=record.dtr_id, version=record.version)
            raise

    @staticmethod
    def _ensure_mutable(record: AttendanceRecord) -> None:
        if record.status == RecordStatus.APPROVED:
            raise ImmutableStateError("Cannot edit an approved DTR")
        if record.is_locked:
            raise ImmutableStateError("Cannot edit a DTR after final rejection")

    def _load_entry(self, dtr_id: int, day: Any) -> tuple[AttendanceRecord, DayEntry]:
        day = require_int_range(day, "Day", 1, 31)
        record = self.get(dtr_id)
        self._ensure_mutable(record)
        return record, record.entry(day)

    def _notify(self, event: str, record: AttendanceRecord, **payload) -> None:
        dispatch_safely(
            self._notifier,
            event,
            {"dtr_id": record.dtr_id, "user_id": record.user_id, "month": record.month, "year": record.year, **payload},
        )

    def get_or_create(self, *, user_id: int, month: Any, year: Any) -> AttendanceRecord:
        """Return the user's DTR for the period, creating it with empty days if absent."""
        month = require_int_range(month, "Month", 1, 12)
        year = require_int_range(year, "Year", MIN_YEAR, MAX_YEAR)

        existing = self._dtrs.get_for_period(int(user_id), month, year)
        if existing:
            return existing

        record = AttendanceRecord.new(user_id=user_id, month=month, year=year)
        record.total_monthly_minutes = self._calculator.monthly_minutes(record.entries)
        try:
            self._dtrs.create(record)
        except ConflictError:
            # Lost a create race; the other writer's record is the one.
            existing = self._dtrs.get_for_period(int(user_id), month, year)
            if not existing:
                raise
            return existing

        log.info("dtr_created", dtr_id=record.dtr_id, user_id=record.user_id, month=month, year=year)
        return record

    @staticmethod
    def _normalize_fields(fields: Mapping[str, Any], *, allow_confirmation: bool) -> dict:
        if not isinstance(fields, Mapping) or not fields:
            raise ValidationError("No fields to update")

        out: dict[str, Any] = {}
        legacy: dict[tuple[int, str], Optional[str]] = {}
        for key, value in fields.items():
            m = LEGACY_FIELD_RE.match(key)
            if m:
                legacy[(int(m.group(2)), m.group(1))] = optional_time(value, key)
            elif key == "shifts":
                if not isinstance(value, list):
                    raise ValidationError("shifts must be a list")
                out["shifts"] = _parse_shift_list(value)
            elif key in _NUMBER_FIELDS:
                out[key] = require_int_range(value or 0, _NUMBER_FIELDS[key], 0, _MAX_DAY_MINUTES)
            elif key == "status":
                out["status"] = str(value or "").strip()
            elif key == "confirmation_status" and allow_confirmation:
                out[key] = _parse_confirmation(value)
            else:
                raise ValidationError(f"Unknown field: {key}")

        if legacy:
            out["legacy"] = legacy
        return out

    @staticmethod
    def _merged_shifts(current: list[ShiftPair], normalized: dict) -> list[ShiftPair]:
        shifts = list(normalized.get("shifts", current))
        for (n, side), value in sorted(normalized.get("legacy", {}).items()):
            while len(shifts) < n:
                shifts.append(ShiftPair())
            pair = shifts[n - 1]
            shifts[n - 1] = ShiftPair(value, pair.time_out) if side == "in" else ShiftPair(pair.time_in, value)
        return _trim_shifts(shifts)

    def _schedule_map_for(self, user_id: int) -> Optional[ScheduleMap]:
        if not self._schedules:
            return None
        doc = self._schedules.resolve(int(user_id))
        if not doc:
            return None
        return build_schedule_map(doc.class_entries, doc.duty_windows)

    def _reconcile_entry(self, record: AttendanceRecord, entry: DayEntry) -> ReconciliationResult:
        schedule_map = self._schedule_map_for(record.user_id)
        if schedule_map is None:
            return ReconciliationResult()
        on_date = date(record.year, record.month, entry.day)
        return self._reconciler.reconcile(on_date, entry.shifts, schedule_map)

    def _apply(self, record: AttendanceRecord, entry: DayEntry, normalized: dict) -> None:
        """Merge normalized fields; derived values are recomputed when times moved."""
        shifts_supplied = "shifts" in normalized or "legacy" in normalized
        if shifts_supplied:
            entry.shifts = self._merged_shifts(entry.shifts, normalized)
        if "status" in normalized:
            entry.status = normalized["status"]
        for key in _NUMBER_FIELDS:
            if key in normalized:
                setattr(entry, key, normalized[key])

        if not shifts_supplied:
            return
        if "total_minutes" not in normalized:
            entry.total_minutes = 0 if entry.is_excused else entry.worked_minutes()
        if "late" not in normalized or "undertime" not in normalized:
            result = self._reconcile_entry(record, entry)
            if "late" not in normalized:
                entry.late = result.late
            if "undertime" not in normalized:
                entry.undertime = result.undertime

    def _set_confirmation(self, entry: DayEntry, status: ConfirmationStatus, actor: Actor) -> None:
        if status == ConfirmationStatus.CONFIRMED:
            entry.confirm(by=str(actor.user_id), by_name=actor.label, at=self._clock())
        else:
            entry.unconfirm()

    def edit_entry(self, *, dtr_id: int, day: Any, fields: Mapping[str, Any]) -> DayEntry:
        """Owner edit. Always drops the entry back to unconfirmed."""
        record, entry = self._load_entry(dtr_id, day)
        normalized = self._normalize_fields(fields, allow_confirmation=False)

        self._apply(record, entry, normalized)
        entry.unconfirm()
        self._save(record)
        return entry

    def edit_entry_as_office(self, *, dtr_id: int, day: Any, fields: Mapping[str, Any], actor: Actor) -> DayEntry:
        record, entry = self._load_entry(dtr_id, day)
        normalized = self._normalize_fields(fields, allow_confirmation=True)

        before = {**entry.shift_fields(), "status": entry.status}
        self._apply(record, entry, normalized)
        after = {**entry.shift_fields(), "status": entry.status}

        changes = tuple(
            FieldChange(field=key, old_value=_history_value(before.get(key)), new_value=_history_value(after.get(key)))
            for key in _tracked_keys(before, after)
            if _history_value(before.get(key)) != _history_value(after.get(key))
        )
        if changes:
            entry.edit_history.append(
                EditRecord(
                    edited_by=str(actor.user_id),
                    edited_by_name=actor.label,
                    edited_at=self._clock(),
                    changes=changes,
                )
            )

        if "confirmation_status" in normalized:
            self._set_confirmation(entry, normalized["confirmation_status"], actor)

        self._save(record)
        log.info("dtr_entry_office_edit", dtr_id=record.dtr_id, day=entry.day, changed=len(changes), actor=actor.user_id)
        return entry

    def confirm_entry(self, *, dtr_id: int, day: Any, actor: Actor) -> DayEntry:
        record, entry = self._load_entry(dtr_id, day)
        self._set_confirmation(entry, ConfirmationStatus.CONFIRMED, actor)
        self._save(record)

        log.info("dtr_entry_confirmed", dtr_id=record.dtr_id, day=entry.day, actor=actor.user_id)
        self._notify("entry_confirmed", record, day=entry.day, by=actor.label)
        return entry

    def unconfirm_entry(self, *, dtr_id: int, day: Any, actor: Actor) -> DayEntry:
        record, entry = self._load_entry(dtr_id, day)
        entry.unconfirm()
        self._save(record)

        log.info("dtr_entry_unconfirmed", dtr_id=record.dtr_id, day=entry.day, actor=actor.user_id)
        return entry

    def confirm_all_entries(self, *, dtr_id: int, actor: Actor) -> int:
        """Confirm every day that has at least one recorded legacy shift time."""
        record = self.get(dtr_id)
        self._ensure_mutable(record)

        count = 0
        for entry in record.entries:
            if entry.has_legacy_times():
                self._set_confirmation(entry, ConfirmationStatus.CONFIRMED, actor)
                count += 1
        self._save(record)

        log.info("dtr_entries_confirmed", dtr_id=record.dtr_id, count=count, actor=actor.user_id)
        self._notify("entries_confirmed", record, count=count, by=actor.label)
        return count

    def mark_excused(
        self,
        *,
        dtr_id: int,
        day: Any,
        actor: Actor,
        excused: bool = True,
        reason: Optional[str] = None,
        confirmation: Optional[str] = None,
    ) -> DayEntry:
        """Excusing forces 0 minutes and confirms the day.

        Clearing the excuse with a ``confirmation`` only applies that state and leaves
        ``total_minutes`` as it is (0 after an excuse); without one the minutes are
        recomputed from the shift pairs.
        """
        record, entry = self._load_entry(dtr_id, day)

        if excused:
            entry.excused_status = ExcusedStatus.EXCUSED
            entry.excused_reason = optional_text(reason) or ""
            entry.total_minutes = 0
            entry.status = STATUS_EXCUSED
            self._set_confirmation(entry, ConfirmationStatus.CONFIRMED, actor)
        else:
            entry.excused_status = ExcusedStatus.NONE
            entry.excused_reason = ""
            if entry.status == STATUS_EXCUSED:
                entry.status = ""
            if confirmation:
                self._set_confirmation(entry, _parse_confirmation(confirmation), actor)
            else:
                entry.total_minutes = entry.worked_minutes()

        self._save(record)
        log.info("dtr_entry_excused", dtr_id=record.dtr_id, day=entry.day, excused=excused, actor=actor.user_id)
        self._notify("entry_excused", record, day=entry.day, excused=excused, reason=entry.excused_reason)
        return entry

    def mark_absent(
        self,
        *,
        dtr_id: int,
        day: Any,
        actor: Actor,
        absent: bool = True,
        confirmation: Optional[str] = None,
    ) -> DayEntry:
        record, entry = self._load_entry(dtr_id, day)

        if absent:
            entry.clear_shifts()
            entry.late = 0
            entry.undertime = 0
            entry.total_minutes = 0
            entry.status = STATUS_ABSENT
            entry.excused_status = ExcusedStatus.NONE
            entry.excused_reason = ""
            self._set_confirmation(entry, ConfirmationStatus.CONFIRMED, actor)
        else:
            if entry.status == STATUS_ABSENT:
                entry.status = ""
            if confirmation:
                self._set_confirmation(entry, _parse_confirmation(confirmation), actor)

        self._save(record)
        log.info("dtr_entry_absent", dtr_id=record.dtr_id, day=entry.day, absent=absent, actor=actor.user_id)
        self._notify("entry_absent", record, day=entry.day, absent=absent)
        return entry

    def reconcile_day(self, *, dtr_id: int, day: Any) -> ReconciliationResult:
        """Late/undertime for a day against the person's current schedule (read only)."""
        day = require_int_range(day, "Day", 1, 31)
        record = self.get(dtr_id)
        return self._reconcile_entry(record, record.entry(day))

    def update_header(
        self,
        *,
        dtr_id: int,
        department: Optional[str] = None,
        duty_hours: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        record = self.get(dtr_id)
        self._ensure_mutable(record)

        if department is not None:
            record.department = optional_text(department)
        if duty_hours is not None:
            record.duty_hours = optional_text(duty_hours)
        if remarks is not None:
            record.remarks = optional_text(remarks)
        self._save(record)
        return record

    def submit(self, *, dtr_id: int) -> AttendanceRecord:
        record = self.get(dtr_id)
        if record.status in {RecordStatus.SUBMITTED, RecordStatus.APPROVED}:
            raise ValidationError("DTR already submitted")
        self._ensure_mutable(record)

        record.status = RecordStatus.SUBMITTED
        record.submitted_at = self._clock()
        self._save(record)

        log.info("dtr_submitted", dtr_id=record.dtr_id, user_id=record.user_id)
        self._notify("dtr_submitted", record)
        return record

    def _review(self, record: AttendanceRecord, actor: Actor) -> None:
        if record.status != RecordStatus.SUBMITTED:
            raise ValidationError("Only submitted DTRs can be reviewed")
        record.checked_by = actor.label
        record.checked_at = self._clock()

    def approve(self, *, dtr_id: int, actor: Actor, remarks: Optional[str] = None) -> AttendanceRecord:
        record = self.get(dtr_id)
        self._review(record, actor)
        record.status = RecordStatus.APPROVED
        if remarks is not None:
            record.remarks = optional_text(remarks)
        self._save(record)

        log.info("dtr_approved", dtr_id=record.dtr_id, actor=actor.user_id)
        self._notify("dtr_approved", record, by=actor.label)
        return record

    def reject(self, *, dtr_id: int, actor: Actor, remarks: str, final: bool = False) -> AttendanceRecord:
        remarks = require_non_empty(remarks, "Remarks")
        record = self.get(dtr_id)
        self._review(record, actor)
        record.status = RecordStatus.REJECTED
        record.remarks = remarks
        record.is_final = bool(final)
        self._save(record)

        log.info("dtr_rejected", dtr_id=record.dtr_id, final=record.is_final, actor=actor.user_id)
        self._notify("dtr_rejected", record, by=actor.label, remarks=remarks, final=record.is_final)
        return record

    def delete(self, *, dtr_id: int) -> None:
        record = self.get(dtr_id)
        if record.status == RecordStatus.APPROVED:
            raise ImmutableStateError("Cannot delete an approved DTR")
        self._dtrs.delete(record.dtr_id)
        log.info("dtr_deleted", dtr_id=record.dtr_id, user_id=record.user_id)

    def list_submitted(
        self,
        *,
        month: Any = None,
        year: Any = None,
        status: Optional[str] = None,
    ) -> list[AttendanceRecord]:
        """Office review queue; defaults to records awaiting review."""
        try:
            statuses = [RecordStatus(status)] if status else [RecordStatus.SUBMITTED]
        except ValueError:
            raise ValidationError(f"Invalid status: {status}")
        month = require_int_range(month, "Month", 1, 12) if month not in (None, "") else None
        year = require_int_range(year, "Year", MIN_YEAR, MAX_YEAR) if year not in (None, "") else None
        return list(self._dtrs.list_by_status(statuses, month=month, year=year))
