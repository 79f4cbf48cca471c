"""
Test splitting agent replies into display text and dashboard blocks.

Run with: python -m pytest jobchat/tests/test_agent_message.py -v
"""

from jobchat.parsing.agent_message import split_agent_message


def test_response_tags_and_dashboard_block():
    message = (
        "<response>Here you go.</response>"
        '<update_dashboard>{"filters": {"jobTitle": ["Nurse"]}}</update_dashboard>'
    )
    split = split_agent_message(message)

    assert split.text == "Here you go."
    assert split.dashboard_block == '{"filters": {"jobTitle": ["Nurse"]}}'
    assert "update_dashboard" not in split.text


def test_plain_message_is_unchanged():
    split = split_agent_message("Plain text reply")

    assert split.text == "Plain text reply"
    assert split.dashboard_block is None
    assert split.yaml_block is None


def test_dashboard_block_without_response_tags():
    message = 'Updated.\n<update_dashboard>{"jobTitle": ["RN"]}</update_dashboard>'
    assert split_agent_message(message).text == "Updated."


def test_unterminated_dashboard_block_is_dropped():
    split = split_agent_message('Hi there<update_dashboard>{"filters": {"jobTi')
    assert split.text == "Hi there"


def test_yaml_block_is_removed():
    message = "Here you go.\nupdate_dashboard:\n  filters:\n    jobTitle: [Nurse]\n"
    split = split_agent_message(message)

    assert split.text == "Here you go."
    assert split.yaml_block.startswith("update_dashboard:")


def test_entities_are_decoded():
    split = split_agent_message("<response>Tom&#39;s &amp; Co</response>")
    assert split.text == "Tom's & Co"


def test_empty_message():
    assert split_agent_message(None).text == ""
