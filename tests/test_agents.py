"""Tests for the booking assistant agents, tools and prompts."""

import pytest
from agents import Agent
from agents.realtime import RealtimeAgent

from ecoagent.agents import (
    BOOKING_TOOL_NAME,
    BookingChatAgent,
    BookingVoiceAgent,
    booking_instructions,
    build_booking_tool,
)
from ecoagent.agents.prompts import load_prompt


async def record_call(call_id, arguments):
    return "ok"


class TestPrompts:
    """Test prompt loading."""

    def test_date_substituted(self):
        prompt = load_prompt("booking_assistant", current_date="Monday, May 4, 2026")

        assert "Monday, May 4, 2026" in prompt
        assert "{current_date}" not in prompt
        assert BOOKING_TOOL_NAME in prompt

    def test_booking_instructions(self):
        assert "Ecocleans" in booking_instructions()

    def test_missing_prompt(self):
        with pytest.raises(FileNotFoundError):
            load_prompt("does_not_exist")


class TestBookingTool:
    """Test the booking tool definition."""

    def test_schema(self):
        tool = build_booking_tool(record_call)

        assert tool.name == BOOKING_TOOL_NAME
        properties = tool.params_json_schema["properties"]
        assert set(properties) == {
            "customer_name",
            "phone_number",
            "email",
            "address",
            "cleaning_size",
            "bedrooms",
            "bathrooms",
            "schedule_date",
            "cleaning_frequency",
        }
        assert not tool.params_json_schema.get("required")


class TestAgents:
    """Test agent construction."""

    def test_chat_agent(self, config):
        chat_agent = BookingChatAgent("Be helpful.", config)

        agent = chat_agent.create()

        assert isinstance(agent, Agent)
        assert agent.instructions == "Be helpful."
        assert agent.model == config.chat_model
        assert len(agent.input_guardrails) == 1
        assert chat_agent.agent is agent

    def test_chat_agent_default_instructions(self, config):
        assert "Ecocleans" in BookingChatAgent(config=config).instructions

    def test_voice_agent(self):
        tool = build_booking_tool(record_call)

        agent = BookingVoiceAgent("Be helpful.", [tool]).create()

        assert isinstance(agent, RealtimeAgent)
        assert agent.instructions == "Be helpful."
        assert [t.name for t in agent.tools] == [BOOKING_TOOL_NAME]
