"""
Test recovery of dashboard filters from agent replies.

Run with: python -m pytest jobchat/tests/test_filters.py -v
"""

from jobchat.core.config import ParsingSettings
from jobchat.core.schemas import JobRecord
from jobchat.parsing.agent_message import split_agent_message
from jobchat.parsing.filters import (
    extract_filters, filters_from_xml, filters_from_yaml, infer_filters,
    parse_list_literal, parse_bool, default_filters
)


def test_tagged_json_filters(parsing_settings):
    message = 'Done.<update_dashboard>{"filters":{"jobTitle":["Nurse"]}}</update_dashboard>'

    assert extract_filters(message, settings=parsing_settings) == {"jobTitle": ["Nurse"]}
    assert split_agent_message(message).text == "Done."


def test_tagged_json_without_filters_key(parsing_settings):
    message = '<update_dashboard>{"jobTypes": ["Contract"]}</update_dashboard>'
    assert extract_filters(message, settings=parsing_settings) == {"jobTypes": ["Contract"]}


def test_lenient_tagged_json(parsing_settings):
    message = "<update_dashboard>{filters: {jobTitle: ['Nurse']}}</update_dashboard>"
    assert extract_filters(message, settings=parsing_settings) == {"jobTitle": ["Nurse"]}


def test_payload_object_wins(parsing_settings):
    payload = {"update_dashboard": {"filters": {"jobTypes": ["Contract"]}}}
    message = '<update_dashboard>{"filters":{"jobTitle":["Nurse"]}}</update_dashboard>'

    assert extract_filters(message, payload=payload, settings=parsing_settings) == {"jobTypes": ["Contract"]}


def test_xml_tags():
    block = (
        "<jobTitle>['Nurse', 'RN']</jobTitle>"
        "<jobTypes>Full-time</jobTypes>"
        "<location><cities>[\"Detroit\"]</cities><radius>50</radius></location>"
        "<datePosted>past_week</datePosted>"
        "<workAuthorization>true</workAuthorization>"
    )
    assert filters_from_xml(block) == {
        "jobTitle": ["Nurse", "RN"],
        "jobTypes": ["Full-time"],
        "location": {"cities": ["Detroit"], "radius": 50},
        "datePosted": "past_week",
        "workAuthorization": True,
    }


def test_xml_inside_dashboard_block(parsing_settings):
    message = "Okay!<update_dashboard><jobTitle>[Nurse]</jobTitle></update_dashboard>"
    assert extract_filters(message, settings=parsing_settings) == {"jobTitle": ["Nurse"]}


def test_yaml_block(parsing_settings):
    message = (
        "Sure!\n"
        "update_dashboard:\n"
        "  filters:\n"
        "    jobTitle: [Nurse, RN]\n"
        "    datePosted: past_week\n"
    )
    assert extract_filters(message, settings=parsing_settings) == {
        "jobTitle": ["Nurse", "RN"],
        "datePosted": "past_week",
    }


def test_yaml_line_fallback():
    block = "update_dashboard:\n\tjobTitle: [Nurse]\n\tdatePosted: past_week\n"
    assert filters_from_yaml(block) == {"jobTitle": ["Nurse"], "datePosted": "past_week"}


def test_dashboard_phrase_defaults(parsing_settings):
    message = "I have updated your dashboard with new results."

    assert extract_filters(message, settings=parsing_settings) == default_filters()

    disabled = ParsingSettings(default_filters_on_dashboard_phrase=False)
    assert extract_filters(message, settings=disabled) == {}


def test_no_filters(parsing_settings):
    assert extract_filters("Thanks for chatting today!", settings=parsing_settings) == {}


def test_inference_is_opt_in():
    text = "1. **Nurse** at Mercy Health"
    enabled = ParsingSettings(infer_filters_from_text=True)

    filters = extract_filters(text, settings=enabled)
    assert filters["jobTitle"] == ["Nurse"]
    assert filters["datePosted"] == "past_week"


def test_infer_filters_from_jobs():
    jobs = [
        JobRecord(title="Nurse", company="Mercy", location="Detroit"),
        JobRecord(title="Nurse", company="Beaumont"),
    ]
    filters = infer_filters("", jobs)

    assert filters["jobTitle"] == ["Nurse"]
    assert filters["location"]["cities"] == ["Detroit"]
    assert filters["workAuthorization"] is True


def test_parse_list_literal():
    assert parse_list_literal('["a", "b"]') == ["a", "b"]
    assert parse_list_literal("[a, b]") == ["a", "b"]
    assert parse_list_literal("'a', 'b'") == ["a", "b"]
    assert parse_list_literal("<item>a</item><item>b</item>") == ["a", "b"]
    assert parse_list_literal("Nurse") == ["Nurse"]
    assert parse_list_literal("") == []
    assert parse_list_literal(None) == []


def test_parse_bool():
    assert parse_bool("true") is True
    assert parse_bool(" Yes ") is True
    assert parse_bool("false") is False
    assert parse_bool(True) is True


def test_numeric_keys_become_strings(parsing_settings):
    payload = {"update_dashboard": {"filters": {1: "Nurse", "location": {2024: "yes"}}}}

    filters = extract_filters("", payload=payload, settings=parsing_settings)

    assert filters == {"1": "Nurse", "location": {"2024": "yes"}}


def test_non_object_filters_are_empty(parsing_settings):
    message = '<update_dashboard>{"filters": "none"}</update_dashboard>'
    payload = {"update_dashboard": {"filters": "none"}}

    assert extract_filters(message, settings=parsing_settings) == {}
    assert extract_filters("", payload=payload, settings=parsing_settings) == {}
