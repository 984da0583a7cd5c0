"""
Cascading Selector Resolver

Keeps a chain of dependent selection fields consistent while the user
changes upstream values:

    department ──► course ──► semester (1..N, N derived from the course)
    department ──► subjects (multi-select, faculty assignment)

Rules:
- A parent change clears every descendant synchronously, before the new
  children fetch resolves.
- Each level carries a request token; a response whose token is no longer
  current belongs to a superseded parent and is discarded.
- Fetch failures never propagate: the field falls back to an empty option
  list with an error message, and the failure is logged.
- Edit forms pre-populate fetch-then-set, so a child value is only assigned
  once the options that label it are loaded.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from campusdesk.domain import EntityStatus, Option, enum_value, field_of
from campusdesk.exceptions import ValidationError, get_error_message
from campusdesk.logging_config import logger
from campusdesk.validation import total_semesters, validate_semester


DEFAULT_SEMESTER_BOUND = 8

ChildFetcher = Callable[[Optional[str]], Awaitable[Sequence[Any]]]


# ==========================================
# Pure resolution
# ==========================================

def default_label(record: Any) -> str:
    name = field_of(record, "name", "")
    code = field_of(record, "code")
    return f"{name} ({code})" if code else str(name)


def resolve_children(
    parent_id: Optional[str],
    collection: Sequence[Any],
    parent_key: Optional[str],
    label: Callable[[Any], str] = default_label,
    constraint: Optional[Callable[[Any], Any]] = None,
) -> List[Option]:
    """
    Active children of `parent_id`, in collection order.

    An empty parent id or a parent with no active children yields an
    empty list, never an error. `parent_key=None` marks a root level.
    """
    if parent_key is not None and not parent_id:
        return []

    options = []
    for record in collection:
        if parent_key is not None and str(field_of(record, parent_key)) != str(parent_id):
            continue
        if enum_value(field_of(record, "status", EntityStatus.ACTIVE)) != EntityStatus.ACTIVE.value:
            continue
        options.append(Option(
            id=str(field_of(record, "id")),
            label=label(record),
            constraint_value=constraint(record) if constraint else None,
        ))
    return options


def derive_bound(course: Optional[Any]) -> int:
    """Total semesters of a course; the fixed maximum when none is selected"""
    if not course:
        return DEFAULT_SEMESTER_BOUND
    duration_value = field_of(course, "duration_value")
    if duration_value is not None:
        return total_semesters(duration_value, field_of(course, "duration_unit"))
    return int(field_of(course, "total_semesters") or DEFAULT_SEMESTER_BOUND)


# ==========================================
# Field state
# ==========================================

@dataclass
class SelectorField:
    """Render state of one dependent control"""
    name: str
    value: Any = None
    options: List[Option] = field(default_factory=list)
    loading: bool = False
    disabled: bool = True
    loaded: bool = False
    error: Optional[str] = None
    empty_message: str = "No options available"
    multiple: bool = False

    @property
    def show_empty_state(self) -> bool:
        return self.loaded and not self.loading and not self.options and not self.error

    def selected_option(self) -> Optional[Option]:
        for option in self.options:
            if option.id == str(self.value):
                return option
        return None

    def selected_label(self) -> Optional[str]:
        if self.multiple:
            ids = {str(v) for v in (self.value or [])}
            return ", ".join(o.label for o in self.options if o.id in ids) or None
        option = self.selected_option()
        return option.label if option else None

    def clear(self) -> None:
        self.value = [] if self.multiple else None
        self.options = []
        self.loading = False
        self.disabled = True
        self.loaded = False
        self.error = None


@dataclass
class SelectorLevel:
    """One level of the chain; `parent=None` marks the root"""
    name: str
    fetch: ChildFetcher
    parent: Optional[str] = None
    parent_key: Optional[str] = None
    label: Callable[[Any], str] = default_label
    constraint: Optional[Callable[[Any], Any]] = None
    empty_message: str = "No options available"
    multiple: bool = False


@dataclass
class BoundedLevel:
    """Enumerated 1..N field whose N comes from the selected `source` record"""
    name: str
    source: str
    default_bound: int = DEFAULT_SEMESTER_BOUND
    label_prefix: str = "Semester"


# ==========================================
# Chain
# ==========================================

class SelectorChain:
    """
    Resolver for one form's dependent fields.

    Usage:
        chain = SelectorChain([
            SelectorLevel("department", fetch=lambda _: api.list_departments(status="active")),
            SelectorLevel("course", parent="department", parent_key="department_id",
                          fetch=lambda dept: api.list_courses(department_id=dept)),
        ], bounded=BoundedLevel("semester", source="course"))

        await chain.load()
        await chain.on_parent_change("department", dept_id)
    """

    def __init__(
        self,
        levels: Sequence[SelectorLevel],
        bounded: Optional[BoundedLevel] = None,
        name: str = "selector",
    ):
        self.name = name
        self._levels: Dict[str, SelectorLevel] = {level.name: level for level in levels}
        self._order: List[str] = [level.name for level in levels]
        self._bounded = bounded
        self._tokens: Dict[str, int] = {level.name: 0 for level in levels}
        self._records: Dict[str, Dict[str, Any]] = {level.name: {} for level in levels}

        self.fields: Dict[str, SelectorField] = {
            level.name: SelectorField(
                name=level.name,
                empty_message=level.empty_message,
                multiple=level.multiple,
                value=[] if level.multiple else None,
            )
            for level in levels
        }
        if bounded:
            self.fields[bounded.name] = SelectorField(name=bounded.name)
            self._refresh_bounded()

        for level in levels:
            if level.parent is not None and level.parent not in self._levels:
                raise ValueError(f"Unknown parent level '{level.parent}' for '{level.name}'")

    def __getitem__(self, name: str) -> SelectorField:
        return self.fields[name]

    def values(self) -> Dict[str, Any]:
        return {name: f.value for name, f in self.fields.items()}

    # ---------- structure ----------

    def _children_of(self, name: str) -> List[SelectorLevel]:
        return [self._levels[n] for n in self._order if self._levels[n].parent == name]

    def descendants(self, name: str) -> List[str]:
        """All downstream field names of `name`, nearest first"""
        result: List[str] = []
        frontier = [name]
        while frontier:
            current = frontier.pop(0)
            for child in self._children_of(current):
                result.append(child.name)
                frontier.append(child.name)
        if self._bounded and (self._bounded.source == name or self._bounded.source in result):
            result.append(self._bounded.name)
        return result

    # ---------- bounded field ----------

    def selected_record(self, name: str) -> Optional[Any]:
        value = self.fields[name].value
        if value in (None, "", []):
            return None
        return self._records.get(name, {}).get(str(value))

    @property
    def bound(self) -> int:
        if not self._bounded:
            return DEFAULT_SEMESTER_BOUND
        record = self.selected_record(self._bounded.source)
        if record is None:
            return self._bounded.default_bound
        return derive_bound(record)

    def _refresh_bounded(self) -> None:
        bounded = self._bounded
        target = self.fields[bounded.name]
        has_source = self.selected_record(bounded.source) is not None
        bound = self.bound
        target.options = [
            Option(id=str(n), label=f"{bounded.label_prefix} {n}", constraint_value=n)
            for n in range(1, bound + 1)
        ]
        target.loaded = has_source
        target.disabled = not has_source
        if target.value is not None and (not has_source or int(target.value) > bound):
            target.value = None

    # ---------- loading ----------

    async def load(self) -> None:
        """Fetch options for every root level"""
        for name in self._order:
            if self._levels[name].parent is None:
                await self._load_level(self._levels[name], None)

    async def _load_level(self, level: SelectorLevel, parent_id: Optional[str]) -> bool:
        target = self.fields[level.name]
        self._tokens[level.name] += 1
        token = self._tokens[level.name]

        if level.parent is not None and not parent_id:
            target.clear()
            return False

        target.loading = True
        target.disabled = True
        target.error = None

        try:
            collection = await level.fetch(parent_id)
        except Exception as e:
            if token != self._tokens[level.name]:
                return False
            logger.warning(
                f"[{self.name}] Failed to load {level.name} options for {parent_id}: {e}",
                extra={"selector": self.name, "level": level.name, "parent_id": parent_id},
            )
            target.options = []
            target.error = get_error_message(e, f"Failed to load {level.name} options")
            target.loading = False
            target.loaded = True
            target.disabled = True
            return False

        if token != self._tokens[level.name]:
            logger.debug(f"[{self.name}] Discarding stale {level.name} options for {parent_id}")
            return False

        collection = list(collection or [])
        self._records[level.name] = {str(field_of(r, "id")): r for r in collection}
        target.options = resolve_children(
            parent_id, collection, level.parent_key, level.label, level.constraint
        )
        target.loading = False
        target.loaded = True
        target.disabled = False
        return True

    # ---------- events ----------

    def _clear_descendants(self, name: str) -> None:
        for child in self.descendants(name):
            if child in self._tokens:
                # invalidate fetches still in flight for the old parent
                self._tokens[child] += 1
                self.fields[child].clear()
                self._records[child] = {}
        if self._bounded:
            self._refresh_bounded()

    async def on_parent_change(self, name: str, parent_id: Any) -> None:
        """Select `parent_id` on level `name` and reload its children"""
        self.fields[name].value = parent_id or None
        self._clear_descendants(name)
        for child in self._children_of(name):
            await self._load_level(child, parent_id or None)
        if self._bounded and self._bounded.source == name:
            self._refresh_bounded()

    async def select(self, name: str, value: Any) -> None:
        """Set any field; parent levels cascade, the bounded field is range checked"""
        if self._bounded and name == self._bounded.name:
            if value in (None, ""):
                self.fields[name].value = None
                return
            if self.fields[name].disabled:
                raise ValidationError(
                    f"Please select a {self._bounded.source} first", field=name
                )
            self.fields[name].value = validate_semester(value, self.bound)
            return
        if self._children_of(name) or (self._bounded and self._bounded.source == name):
            await self.on_parent_change(name, value)
        else:
            self.fields[name].value = value

    async def prefill(self, values: Dict[str, Any]) -> None:
        """
        Edit-mode pre-population.

        Walks the chain top-down: the options for each level are fetched
        using the record's current parent before that level's value is set.
        """
        for name in self._order:
            level = self._levels[name]
            if level.parent is None:
                if not self.fields[name].loaded:
                    await self._load_level(level, None)
            if name not in values:
                continue
            value = values[name]
            self.fields[name].value = value
            if not level.multiple and value and self.fields[name].loaded and not self.fields[name].selected_option():
                logger.warning(
                    f"[{self.name}] Pre-filled {name} '{value}' is not among the active options"
                )
            for child in self._children_of(name):
                await self._load_level(child, value or None)
        if self._bounded:
            self._refresh_bounded()
            bounded_value = values.get(self._bounded.name)
            if bounded_value not in (None, "") and 1 <= int(bounded_value) <= self.bound:
                self.fields[self._bounded.name].value = int(bounded_value)
