from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..core.enums import RuleCategory
from .model import PointRule

_P = RuleCategory.POSITIVE
_N = RuleCategory.NEGATIVE

DEFAULT_RULES: tuple[PointRule, ...] = (
    PointRule("punctual", "Pünktlicher Arbeitsbeginn", 5, _P, "Rechtzeitig zur Arbeit erschienen"),
    PointRule("task-timely-clean", "Aufgabe fristgerecht und ordentlich erledigt", 3, _P,
              "Aufgabe termingerecht und sauber abgeschlossen"),
    PointRule("task-clean", "Aufgabe ordentlich erledigt", 2, _P, "Aufgabe sauber abgeschlossen"),
    PointRule("late", "Zuspätkommen", -5, _N, "Verspätung am Arbeitsplatz"),
    PointRule("marked-not-done", "Als erledigt markiert, aber nicht erledigt", -5, _N,
              "Falsche Statusangabe bei Aufgaben"),
    PointRule("no-guest-greeting", "Keine Begrüßung Gast", -2, _N, "Gast nicht begrüßt"),
    PointRule("no-colleague-greeting", "Keine Begrüßung Kollege", -2, _N, "Kollegen nicht begrüßt"),
    PointRule("wrong-implementation", "Falsche Umsetzung trotz Info", -3, _N, "Anweisungen nicht befolgt"),
    PointRule("no-guest-feedback", "Keine Rückmeldung Gast", -2, _N, "Gast-Anfragen nicht beantwortet"),
    PointRule("stairway-noise", "Lärm im Treppenhaus", -1, _N, "Störende Geräusche verursacht"),
    PointRule("door-slamming", "Türen zuschlagen", -1, _N, "Türen laut geschlossen"),
    PointRule("ac-open-doors", "Aircondition laufen trotz offener Türen", -1, _N, "Energieverschwendung"),
    PointRule("cleaning-system-ignored", "Reinigungssystem nicht eingehalten", -1, _N,
              "Reinigungsstandards nicht befolgt"),
    PointRule("lights-on", "Licht anlassen", -1, _N, "Unnötige Beleuchtung"),
    PointRule("unclean-work", "Unsauberes Arbeiten", -1, _N, "Arbeitsqualität unzureichend"),
    PointRule("ignore-obvious", "Sehen (müssen), aber ignorieren", -3, _N, "Offensichtliche Probleme ignoriert"),
)


class RuleCatalog:
    """Immutable rule lookup, loaded once and passed into the ledger."""

    def __init__(self, rules: Iterable[PointRule]):
        self._rules = {r.id: r for r in rules}

    @classmethod
    def default(cls) -> "RuleCatalog":
        return cls(DEFAULT_RULES)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "RuleCatalog":
        rules = [PointRule.from_record(r) for r in records]
        return cls(rules) if rules else cls.default()

    def get(self, rule_id: str) -> Optional[PointRule]:
        return self._rules.get(rule_id)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[PointRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def by_category(self, category: Optional[RuleCategory] = None) -> list[PointRule]:
        rules = [r for r in self._rules.values() if category is None or r.category == category]
        rules.sort(key=lambda r: r.name)
        return rules
