"""
Tests for user agent rotation.
"""

import pytest
from scrapely.crawler.user_agents import DEFAULT_USER_AGENTS, UserAgentRotator
from scrapely.exceptions import ValidationError


@pytest.mark.unit
class TestUserAgentRotator:
    def test_default_pool(self):
        rotator = UserAgentRotator()
        assert len(rotator) == len(DEFAULT_USER_AGENTS) == 5
        assert rotator.current == DEFAULT_USER_AGENTS[0]
        assert rotator.get_all_agents() == list(DEFAULT_USER_AGENTS)

    def test_rotation_wraps_around(self):
        rotator = UserAgentRotator(["a", "b", "c"])
        assert [rotator.next() for _ in range(5)] == ["b", "c", "a", "b", "c"]
        assert rotator.index == 2

    def test_disabled_rotation_pins_first_agent(self):
        rotator = UserAgentRotator(["a", "b"], enabled=False)
        assert [rotator.next() for _ in range(3)] == ["a", "a", "a"]
        assert rotator.current == "a"

    def test_single_agent_pool(self):
        rotator = UserAgentRotator(["only"])
        assert rotator.next() == "only"
        assert rotator.next() == "only"

    def test_empty_pool_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            UserAgentRotator([])
        assert exc_info.value.param == "agents"

    def test_get_all_agents_returns_copy(self):
        rotator = UserAgentRotator(["a"])
        rotator.get_all_agents().append("b")
        assert len(rotator) == 1
