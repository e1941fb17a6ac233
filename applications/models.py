"""
Job application table.

Status flow: Pending -> Approved/Rejected (terminal).
Offer letter is attached only after approval and may be replaced.
"""
from __future__ import annotations

from sqlalchemy import Column, Index, Integer, String, Text, UniqueConstraint

from db import Base


STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("reference_id", name="uq_job_applications_reference_id"),
        UniqueConstraint("email", name="uq_job_applications_email"),
        UniqueConstraint("mobile_number", name="uq_job_applications_mobile_number"),
        Index("ix_job_applications_status_created", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    reference_id = Column(String(50), nullable=False)

    full_name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False)
    mobile_number = Column(String(20), nullable=False)
    department = Column(String(50), nullable=False)
    job_role = Column(String(50), nullable=False)

    # Profile (all optional)
    dob = Column(String(10), nullable=True)  # YYYY-MM-DD
    father_name = Column(String(100), nullable=True)
    permanent_address = Column(Text, nullable=True)
    expected_salary = Column(Integer, nullable=True)
    interview_date = Column(String(10), nullable=True)
    joining_date = Column(String(10), nullable=True)
    employment_type = Column(String(50), nullable=True)
    branch_location = Column(String(100), nullable=True)

    ssc_year = Column(Integer, nullable=True)
    ssc_percentage = Column(String(10), nullable=True)
    intermediate_year = Column(Integer, nullable=True)
    intermediate_percentage = Column(String(10), nullable=True)
    college_name = Column(String(100), nullable=True)
    register_number = Column(String(50), nullable=True)
    graduation_year = Column(Integer, nullable=True)
    graduation_percentage = Column(String(10), nullable=True)
    additional_certifications = Column(Text, nullable=True)

    experience_status = Column(String(20), nullable=True)
    years_of_experience = Column(Integer, nullable=True)
    previous_company = Column(String(100), nullable=True)
    previous_job_role = Column(String(100), nullable=True)

    # Stored filenames in the document store
    ssc_doc_path = Column(String(255), nullable=True)
    intermediate_doc_path = Column(String(255), nullable=True)
    graduation_doc_path = Column(String(255), nullable=True)
    additional_files_path = Column(String(255), nullable=True)
    offer_letter_path = Column(String(255), nullable=True)  # Set only once Approved

    status = Column(String(20), nullable=False, default=STATUS_PENDING, index=True)

    # Optimistic lock; every UPDATE checks and bumps it.
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(Text, nullable=False, default="", index=True)
    updated_at = Column(Text, nullable=False, default="")

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}


SUMMARY_FIELDS = (
    "id",
    "reference_id",
    "full_name",
    "email",
    "mobile_number",
    "department",
    "job_role",
    "status",
    "created_at",
    "offer_letter_path",
)
