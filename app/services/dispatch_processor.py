"""
Dispatch Processor

Runs one evaluation tick over all eligible recurring messages: every rule that
is due gets exactly one message appended to its room and is stamped as sent.

Emitting the message and stamping ``last_sent_at`` are two separate store
calls. A crash between them, or two ticks running at once, can fire a rule
twice on the same day; nothing here locks or retries.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Union

from app.schemas.recurring_message import TickResult
from app.services.clock import Clock
from app.services.message_sink import MessageSink
from app.services.recurrence import should_fire
from app.services.recurrence_validator import RecurrenceValidator
from app.services.rule_store import RuleStore
from app.utils.logger import get_logger
from app.utils.metrics import MetricsCollector, metrics_collector

logger = get_logger("recurring-message-dispatcher")

AUTOMATION_SOURCE = "recurring_message"


def automation_tags(rule_id) -> Dict[str, Any]:
    """Metadata marking a message as generated by a recurring message."""
    return {
        "automated": True,
        "source": AUTOMATION_SOURCE,
        "recurring_message_id": str(rule_id),
    }


class DispatchProcessor:
    """Evaluates recurring messages and fires the ones that are due."""

    def __init__(
        self,
        rule_store: RuleStore,
        message_sink: MessageSink,
        clock: Optional[Clock] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.rule_store = rule_store
        self.message_sink = message_sink
        self.clock = clock or Clock()
        self.metrics = metrics or metrics_collector

    def run_tick(self, as_of: Optional[Union[date, datetime]] = None) -> TickResult:
        """
        Fire every recurring message due on ``as_of``.

        Args:
            as_of: Evaluation date, defaults to the clock's today

        Returns:
            TickResult with counts; ``fired_count`` counts rules that were
            both emitted and stamped

        Raises:
            Whatever the rule store raises while listing candidates. Failures
            of individual rules are logged and never raised.
        """
        as_of = self.clock.today() if as_of is None else self.clock.local_date(as_of)
        started = datetime.utcnow()

        rules = self.rule_store.list_active_in_window(as_of)
        result = TickResult(as_of=as_of, evaluated_count=len(rules))

        # Ids are read up front; later rows may be expired by an earlier commit
        for rule_id, rule in [(rule.id, rule) for rule in rules]:
            try:
                self._process_rule(rule, as_of, result)
            except Exception as e:
                result.failed_rule_ids.append(str(rule_id))
                logger.error(
                    "Failed to process recurring message",
                    rule_id=rule_id,
                    error=str(e),
                )

        self.metrics.tick_completed(
            evaluated=result.evaluated_count,
            fired=result.fired_count,
            skipped=result.skipped_count,
            errors=len(result.failed_rule_ids),
        )
        self.metrics.record_timer(
            "recurring_messages_tick_seconds", (datetime.utcnow() - started).total_seconds()
        )
        logger.info(
            "Recurring message tick complete",
            as_of=as_of,
            evaluated=result.evaluated_count,
            fired=result.fired_count,
            skipped=result.skipped_count,
            failed=len(result.failed_rule_ids),
        )
        return result

    def _process_rule(self, rule, as_of: date, result: TickResult) -> None:
        rule_id = rule.id

        validation = RecurrenceValidator.validate_rule(rule)
        if not validation["valid"]:
            result.skipped_count += 1
            logger.warning(
                "Skipping invalid recurring message",
                rule_id=rule_id,
                errors=validation["errors"],
            )
            return

        if not should_fire(rule, as_of, self.clock.tz):
            return

        room_id = rule.room_id
        try:
            message_id = self.message_sink.append(
                room_id,
                rule.message_content,
                rule.created_by,
                rule.created_by_name,
                automation_tags(rule_id),
            )
        except Exception as e:
            result.failed_rule_ids.append(str(rule_id))
            logger.error(
                "Failed to emit recurring message",
                rule_id=rule_id,
                room_id=room_id,
                error=str(e),
            )
            return

        try:
            self.rule_store.mark_fired(rule_id, self.clock.now())
        except Exception as e:
            # The message is already in the room; the next tick today may repeat it
            result.failed_rule_ids.append(str(rule_id))
            logger.error(
                "Recurring message sent but not marked as sent",
                rule_id=rule_id,
                room_id=room_id,
                message_id=message_id,
                error=str(e),
            )
            return

        result.fired_count += 1
        logger.info(
            "Recurring message sent",
            rule_id=rule_id,
            room_id=room_id,
            message_id=message_id,
        )
