from sqlalchemy import BigInteger, Column, Index, String, Text, UniqueConstraint
from .database import Base


class AssessmentRecord(Base):
    __tablename__ = "assessment_record"

    id = Column(String(36), primary_key=True)
    assessment_type = Column(String, nullable=False)
    company_id = Column(String, nullable=False)
    # Company assessments store "" so the unique constraint holds without NULL semantics.
    employee_id = Column(String, nullable=False, default="")
    responses_json = Column(Text, nullable=False, default="{}")
    status = Column(String, nullable=False, default="draft")
    started_at = Column(String, nullable=False)
    last_updated = Column(String, nullable=False)
    submitted_at = Column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_type", "company_id", "employee_id", name="uq_assessment_owner"),
        Index("idx_assessment_record_company_id", "company_id"),
    )


class UploadedFile(Base):
    __tablename__ = "uploaded_file"

    file_key = Column(String, primary_key=True)
    company_id = Column(String, nullable=False)
    question_id = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    content_type = Column(String, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    uploaded_at = Column(String, nullable=False)

    __table_args__ = (
        Index("idx_uploaded_file_company_question", "company_id", "question_id"),
    )


class AssessmentEvent(Base):
    __tablename__ = "assessment_event"

    id = Column(String(36), primary_key=True)
    event_name = Column(String, nullable=False)
    # Uploads sent without an assessment type are logged with NULL.
    assessment_type = Column(String, nullable=True)
    company_id = Column(String, nullable=False)
    employee_id = Column(String, nullable=True)
    question_id = Column(String, nullable=True)
    properties = Column(Text, nullable=False, default="{}")
    created_at = Column(String, nullable=False)

    __table_args__ = (
        Index("idx_assessment_event_company_id", "company_id"),
    )
