"""
Recruitment tools exposed to the assistant.

The executors return canned data shaped like the real back-ends would
(candidate search, scheduling, resume parsing, pipeline lookup). Swapping in a
real implementation only requires registering a different executor.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from recruiter_call_assistant.tools.registry import ToolDefinition, ToolRegistry

logger = logging.getLogger(__name__)

InterviewType = Literal["phone", "video", "in-person", "technical"]
Timeframe = Literal["today", "this-week", "this-month"]
PipelineStatus = Literal["all", "scheduled", "completed", "cancelled"]


class _ToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True)


class SearchCandidatesInput(_ToolInput):
    skills: list[str] = Field(..., description="Required skills")
    experience: float = Field(..., ge=0, description="Minimum years of experience")
    location: str | None = Field(default=None, description="Preferred location")
    role: str | None = Field(default=None, description="Job role or title")


class ScheduleInterviewInput(_ToolInput):
    candidate_id: str = Field(..., alias="candidateId", description="Candidate ID")
    candidate_name: str = Field(..., alias="candidateName", description="Candidate name")
    scheduled_for: str = Field(..., alias="datetime", description="Interview date and time")
    interview_type: InterviewType = Field(..., alias="type", description="Interview type")
    duration: float = Field(default=60, gt=0, description="Duration in minutes")
    interviewers: list[str] | None = Field(default=None, description="List of interviewer names")


class ParseResumeInput(_ToolInput):
    file_url: str = Field(..., alias="fileUrl", description="URL or path to the resume file")
    candidate_name: str | None = Field(default=None, alias="candidateName", description="Candidate name if known")


class InterviewPipelineInput(_ToolInput):
    timeframe: Timeframe = Field(default="this-week", description="Window of interviews to return")
    status: PipelineStatus = Field(default="all", description="Only return interviews with this status")


def search_candidates(args: SearchCandidatesInput) -> dict[str, Any]:
    logger.info(f"Searching candidates: skills={args.skills} experience={args.experience} location={args.location}")
    candidates = [
        {
            "id": "1",
            "name": "John Doe",
            "skills": list(args.skills),
            "experience": args.experience + 1,
            "location": args.location or "San Francisco",
            "email": "john@example.com",
            "matchScore": 95,
        },
        {
            "id": "2",
            "name": "Jane Smith",
            "skills": [*args.skills, "Leadership"],
            "experience": args.experience + 2,
            "location": args.location or "New York",
            "email": "jane@example.com",
            "matchScore": 88,
        },
    ]
    return {
        "candidates": candidates,
        "totalFound": len(candidates),
        "searchCriteria": args.model_dump(),
    }


def schedule_interview(args: ScheduleInterviewInput) -> dict[str, Any]:
    logger.info(f"Scheduling {args.interview_type} interview with {args.candidate_name} for {args.scheduled_for}")
    return {
        "success": True,
        "interviewId": f"int_{int(time.time() * 1000)}",
        "scheduledFor": args.scheduled_for,
        "type": args.interview_type,
        "duration": args.duration,
        "candidateName": args.candidate_name,
        "interviewers": args.interviewers or ["Hiring Manager"],
        "message": f"Interview scheduled successfully with {args.candidate_name} for {args.scheduled_for}",
    }


def parse_resume(args: ParseResumeInput) -> dict[str, Any]:
    logger.info(f"Parsing resume: {args.file_url}")
    resume = {
        "personalInfo": {
            "name": args.candidate_name or "John Doe",
            "email": "john.doe@email.com",
            "phone": "+1-555-123-4567",
            "location": "San Francisco, CA",
            "linkedIn": "linkedin.com/in/johndoe",
        },
        "summary": "Experienced software engineer with 5+ years in full-stack development",
        "skills": ["JavaScript", "React", "Node.js", "TypeScript", "Python", "AWS"],
        "experience": [
            {
                "company": "Tech Corp",
                "position": "Senior Software Engineer",
                "duration": "2020-2024",
                "description": "Led development of microservices architecture",
            }
        ],
        "education": [
            {
                "institution": "University of California",
                "degree": "Bachelor of Science",
                "field": "Computer Science",
                "year": "2018",
            }
        ],
    }
    return {
        "success": True,
        "resumeData": resume,
        "extractedSkills": len(resume["skills"]),
        "experienceYears": 5,
        "message": f"Successfully parsed resume for {resume['personalInfo']['name']}",
    }


_PIPELINE = [
    {
        "id": "int_1",
        "candidateName": "Alice Johnson",
        "position": "Frontend Developer",
        "scheduledAt": "2024-01-15T14:00:00Z",
        "type": "video",
        "status": "scheduled",
        "interviewers": ["John Manager", "Jane Tech Lead"],
    },
    {
        "id": "int_2",
        "candidateName": "Bob Wilson",
        "position": "Backend Engineer",
        "scheduledAt": "2024-01-16T10:00:00Z",
        "type": "technical",
        "status": "scheduled",
        "interviewers": ["Mike Senior Dev"],
    },
]


def get_interview_pipeline(args: InterviewPipelineInput) -> dict[str, Any]:
    logger.info(f"Getting interview pipeline: timeframe={args.timeframe} status={args.status}")
    pipeline = [dict(item) for item in _PIPELINE if args.status == "all" or item["status"] == args.status]
    return {
        "pipeline": pipeline,
        "timeframe": args.timeframe,
        "totalInterviews": len(pipeline),
        "byStatus": {
            status: sum(1 for item in pipeline if item["status"] == status)
            for status in ("scheduled", "completed", "cancelled")
        },
    }


RECRUITMENT_TOOLS = [
    ToolDefinition(
        name="searchCandidates",
        description="Search for candidates in the database with specific criteria",
        input_model=SearchCandidatesInput,
        executor=search_candidates,
    ),
    ToolDefinition(
        name="scheduleInterview",
        description="Schedule an interview with a candidate",
        input_model=ScheduleInterviewInput,
        executor=schedule_interview,
    ),
    ToolDefinition(
        name="parseResume",
        description="Parse and extract information from a resume",
        input_model=ParseResumeInput,
        executor=parse_resume,
    ),
    ToolDefinition(
        name="getInterviewPipeline",
        description="Get current interview pipeline and scheduled interviews",
        input_model=InterviewPipelineInput,
        executor=get_interview_pipeline,
    ),
]


def build_recruitment_registry() -> ToolRegistry:
    """Create a registry holding the four recruitment tools."""
    return ToolRegistry(RECRUITMENT_TOOLS)
