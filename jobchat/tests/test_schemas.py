"""
Test the pydantic schemas.

Run with: python -m pytest jobchat/tests/test_schemas.py -v
"""

from jobchat.core.schemas import ChatRequest, JobRecord, UserRole


def test_job_record_fallbacks():
    job = JobRecord(title="Nurse")

    assert job.company == "Unknown Company"
    assert job.location == "Location not specified"
    assert job.description == "Nurse position at Unknown Company"
    assert job.job_type == "Full-time"
    assert job.remote is False


def test_job_record_blank_title():
    assert JobRecord(title="  ").title == "No title"


def test_job_record_remote_detection():
    assert JobRecord(title="Developer", location="Remote - US").remote is True
    assert JobRecord(title="Remote Support Agent").remote is True


def test_job_record_aliases():
    job = JobRecord.model_validate({"jobTitle": "Dev", "type": "Contract", "applyUrl": "https://x"})
    data = job.model_dump(by_alias=True)

    assert data["jobTitle"] == "Dev"
    assert data["type"] == "Contract"
    assert data["applyUrl"] == "https://x"


def test_chat_request_ignores_bad_optional_fields():
    request = ChatRequest.model_validate({
        "message": "hi",
        "userId": 123,
        "userRole": "admin",
        "currentFilters": "not an object",
        "extra": True,
    })

    assert request.user_id is None
    assert request.user_role is None
    assert request.current_filters is None

    request = ChatRequest.model_validate({"message": "hi", "userRole": "student"})
    assert request.user_role == UserRole.STUDENT
