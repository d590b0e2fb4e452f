"""
Adaptation rule engine.

Each rule pairs a predicate over a RuleInput with a directive template. The
engine is stateless: every call evaluates all rules against the given input
and returns the triggered directives ordered high -> low priority. A rule
that raises is logged and skipped; the remaining rules still run.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from coach.config import Settings, get_settings
from coach.core.models import (
    AdaptationDirective,
    DirectiveType,
    EnvironmentalFactors,
    Priority,
    TimeOfDay,
    User,
    build_directive,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleInput:
    """Signals available to the rules for one evaluation."""
    rpe: Optional[float] = None
    heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    form_score: Optional[float] = None  # 0-100
    set_index: int = 0
    completion_rate: Optional[float] = None  # reps / target reps
    environment: EnvironmentalFactors = field(default_factory=EnvironmentalFactors)
    session_start: bool = False

    @property
    def heart_rate_percent(self) -> Optional[float]:
        if self.heart_rate is None or not self.max_heart_rate:
            return None
        return self.heart_rate / self.max_heart_rate * 100


@dataclass(frozen=True)
class Rule:
    name: str
    signal: str
    predicate: Callable[[RuleInput], bool]
    directive: AdaptationDirective


def max_heart_rate_for(user: Optional[User], settings: Optional[Settings] = None) -> float:
    """Profile max HR, else 220 - age, else 220 - the configured default age."""
    settings = settings or get_settings()
    if user is not None and (user.max_heart_rate or user.age is not None):
        return user.estimated_max_heart_rate(settings.default_user_age)
    logger.info(
        f"No age or max heart rate on profile, assuming age {settings.default_user_age}"
    )
    return float(220 - settings.default_user_age)


def default_rules(settings: Optional[Settings] = None) -> List[Rule]:
    s = settings or get_settings()
    return [
        Rule(
            name="very_high_rpe",
            signal="rpe",
            predicate=lambda i: i.rpe is not None and i.rpe >= s.very_high_rpe,
            directive=build_directive(
                DirectiveType.INTENSITY,
                reason="Very high perceived exertion",
                recommendation="Reduce load by 10-15% for the next set",
                priority=Priority.HIGH,
                auto_apply=True,
                value=0.875,
                signal="rpe",
            ),
        ),
        Rule(
            name="low_rpe",
            signal="rpe",
            predicate=lambda i: i.rpe is not None and i.rpe <= 5 and i.set_index > 0,
            directive=build_directive(
                DirectiveType.INTENSITY,
                reason="Set felt easy",
                recommendation="Consider adding 5% load",
                priority=Priority.MEDIUM,
                auto_apply=False,
                value=1.05,
                signal="rpe",
            ),
        ),
        Rule(
            name="high_heart_rate",
            signal="heart_rate",
            predicate=lambda i: (
                i.heart_rate_percent is not None
                and i.heart_rate_percent > s.max_heart_rate_percent
            ),
            directive=build_directive(
                DirectiveType.REST,
                reason="Heart rate above 90% of estimated max",
                recommendation="Extend rest until heart rate recovers",
                priority=Priority.HIGH,
                auto_apply=True,
                value=1.25,
                signal="heart_rate",
            ),
        ),
        Rule(
            name="poor_form",
            signal="form_score",
            predicate=lambda i: i.form_score is not None and i.form_score < s.form_score_threshold,
            directive=build_directive(
                DirectiveType.TECHNIQUE,
                reason="Form quality dropping",
                recommendation="Slow the tempo and focus on technique cues",
                priority=Priority.HIGH,
                auto_apply=False,
                signal="form_score",
            ),
        ),
        Rule(
            name="low_completion",
            signal="completion",
            predicate=lambda i: (
                i.completion_rate is not None and i.completion_rate < s.low_completion_rate
            ),
            directive=build_directive(
                DirectiveType.VOLUME,
                reason="Completed less than 60% of target reps",
                recommendation="Reduce volume or swap to an easier variation",
                priority=Priority.MEDIUM,
                auto_apply=False,
                value=0.7,
                signal="completion",
            ),
        ),
        Rule(
            name="hot_environment",
            signal="temperature",
            predicate=lambda i: (
                i.session_start
                and i.environment.temperature is not None
                and i.environment.temperature > s.hot_temperature
            ),
            directive=build_directive(
                DirectiveType.REST,
                reason="Hot environment",
                recommendation="Increase rest periods by 15% and stay hydrated",
                priority=Priority.MEDIUM,
                auto_apply=True,
                value=1.15,
                signal="temperature",
            ),
        ),
        Rule(
            name="cold_environment",
            signal="temperature",
            predicate=lambda i: (
                i.session_start
                and i.environment.temperature is not None
                and i.environment.temperature < s.cold_temperature
            ),
            directive=build_directive(
                DirectiveType.WARMUP,
                reason="Cold environment",
                recommendation="Extend the warm-up",
                priority=Priority.MEDIUM,
                auto_apply=True,
                value=1.5,
                signal="temperature",
            ),
        ),
        Rule(
            name="morning_session",
            signal="time_of_day",
            predicate=lambda i: i.session_start and i.environment.time_of_day == TimeOfDay.MORNING,
            directive=build_directive(
                DirectiveType.INTENSITY,
                reason="Morning session",
                recommendation="Ramp intensity gradually",
                priority=Priority.MEDIUM,
                auto_apply=True,
                value=0.9,
                signal="time_of_day",
            ),
        ),
        Rule(
            name="evening_session",
            signal="time_of_day",
            predicate=lambda i: i.session_start and i.environment.time_of_day == TimeOfDay.EVENING,
            directive=build_directive(
                DirectiveType.INTENSITY,
                reason="Evening session",
                recommendation="Keep intensity slightly lower to protect sleep",
                priority=Priority.LOW,
                auto_apply=True,
                value=0.95,
                signal="time_of_day",
            ),
        ),
    ]


class AdaptationRuleEngine:

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self.rules = list(rules) if rules is not None else default_rules()

    def evaluate(self, rule_input: RuleInput) -> List[AdaptationDirective]:
        triggered: List[AdaptationDirective] = []
        for rule in self.rules:
            try:
                if rule.predicate(rule_input):
                    triggered.append(rule.directive)
            except Exception as e:
                logger.error(f"Rule '{rule.name}' failed and was skipped: {e}")
        # sorted() is stable, so rules of equal priority keep table order
        return sorted(triggered, key=lambda d: d.priority.rank)
