"""
Unit tests for prompt rendering and the scheduling directive boundary.

WHAT: Test system prompt content, chat rendering and sentinel parsing
WHY: The sentinel is the only free-text signal the agent interprets
HOW: Pure function calls
"""

import pytest

from upseller.agents.prompts import (
    SCHEDULING_SENTINEL,
    estimate_tokens,
    extract_scheduling_directive,
    render_negotiation_messages,
    render_system_prompt,
)
from tests.conftest import make_message


@pytest.mark.unit
class TestSchedulingDirective:

    def test_sentinel_is_stripped_and_reported(self):
        text, requested = extract_scheduling_directive(f"Sounds good. {SCHEDULING_SENTINEL}")
        assert text == "Sounds good."
        assert requested is True

    def test_sentinel_mid_text(self):
        text, requested = extract_scheduling_directive(f"Great {SCHEDULING_SENTINEL} see you soon")
        assert text == "Great see you soon"
        assert requested is True

    def test_plain_text_untouched(self):
        assert extract_scheduling_directive("  Yes it is.  ") == ("Yes it is.", False)

    def test_empty_text(self):
        assert extract_scheduling_directive("") == ("", False)

    def test_lookalike_is_not_sentinel(self):
        text, requested = extract_scheduling_directive("[initiate scheduling]")
        assert requested is False
        assert text == "[initiate scheduling]"


@pytest.mark.unit
class TestSystemPrompt:

    def test_context_rendered_as_camel_case_json(self, week_context):
        prompt = render_system_prompt(week_context)
        assert '"targetPrice": 75' in prompt
        assert '"lowestPrice": 60' in prompt
        assert '"sellTimeFrame": "one_week"' in prompt
        assert SCHEDULING_SENTINEL in prompt

    def test_policy_hint_appended(self, week_context):
        prompt = render_system_prompt(week_context, policy_hint="accept the buyer's offer of $80.")
        assert prompt.endswith("accept the buyer's offer of $80.")

    def test_no_hint_section_without_hint(self, week_context):
        assert "Pricing decision" not in render_system_prompt(week_context)


@pytest.mark.unit
class TestMessageRendering:

    def test_history_is_bounded(self, week_context):
        history = [make_message(f"message {i}", msg_id=f"m{i}") for i in range(15)]
        current = make_message("Is this still available?", msg_id="current")

        messages = render_negotiation_messages(week_context, history, current, max_messages=10)

        assert len(messages) == 12  # system + 10 history + current
        assert messages[1]["content"] == "message 5"
        assert messages[-1]["content"] == "Is this still available?"

    def test_character_budget_drops_oldest(self, week_context):
        history = [make_message("x" * 300, msg_id=f"m{i}") for i in range(5)]
        current = make_message("ok?", msg_id="current")

        messages = render_negotiation_messages(week_context, history, current, max_chars=700)

        assert len(messages) == 4  # system + 2 history + current

    def test_estimate_tokens(self):
        assert estimate_tokens([{"role": "user", "content": "abcd" * 10}]) == 10
