"""Shared constants for job-readiness-engine."""

from __future__ import annotations

# Sentinel school name for the global configuration layer
COMMON_SCHOOL = "Common"

# Stored scope key of configs without a campus; never a valid campus id
ALL_CAMPUSES = "*"

SCHOOLS: list[str] = [
    "School of Programming",
    "School of Business",
    "School of Finance",
    "School of Education",
    "School of Second Chance",
]

# PoC ratings are on a fixed 1-4 scale
POC_RATING_SCALE = 4

# Readiness label thresholds (percent)
JOB_READY_PERCENTAGE = 100
UNDER_PROCESS_THRESHOLD = 30

# Seed criteria for the global Common config
DEFAULT_CRITERIA: list[dict[str, str]] = [
    {
        "criteria_id": "profile_complete",
        "name": "Profile Completed",
        "description": "All mandatory profile fields are filled",
        "category": "profile",
    },
    {
        "criteria_id": "resume_uploaded",
        "name": "Resume Uploaded",
        "description": "Latest resume is uploaded and approved",
        "category": "profile",
    },
    {
        "criteria_id": "english_b1",
        "name": "English B1 Level",
        "description": "English proficiency at least B1 (Speaking & Writing)",
        "category": "skills",
    },
    {
        "criteria_id": "interview_practice",
        "name": "Interview Practice Sessions",
        "description": "Completed minimum required mock interview sessions",
        "category": "preparation",
    },
    {
        "criteria_id": "dsa_problems",
        "name": "DSA Problems Solved",
        "description": "Solved minimum required DSA problems",
        "category": "technical",
    },
    {
        "criteria_id": "projects_completed",
        "name": "Projects Completed",
        "description": "Completed minimum required projects with documentation",
        "category": "technical",
    },
    {
        "criteria_id": "github_active",
        "name": "GitHub Profile Active",
        "description": "GitHub profile linked and has recent contributions",
        "category": "profile",
    },
    {
        "criteria_id": "soft_skills_assessment",
        "name": "Soft Skills Assessment",
        "description": "Completed soft skills assessment with minimum score",
        "category": "skills",
    },
    {
        "criteria_id": "attendance_requirement",
        "name": "Attendance Requirement",
        "description": "Meeting minimum attendance percentage",
        "category": "academic",
    },
]
