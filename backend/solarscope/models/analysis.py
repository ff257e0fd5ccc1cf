"""
Analysis model for completed AI analysis runs.
"""

from sqlalchemy import Column, String, Text, Integer, JSON, Index
from .base import BaseModel

class Analysis(BaseModel):
    """
    One completed installation or fault-detection analysis.

    Ownership is either user_id (authenticated) or session_id (anonymous),
    never both. user_id is a plain integer rather than a foreign key so that
    a full reset can delete users and analyses in any order.
    """

    __tablename__ = "analyses"

    user_id = Column(Integer, nullable=True, index=True)
    session_id = Column(Text, nullable=True, index=True)

    # Per-(user, type) display counter: "Installation Analysis #3"
    user_sequence_number = Column(Integer, nullable=False, default=1)

    # 'installation' | 'fault-detection'
    type = Column(String(32), nullable=False)

    # May point at a temp upload that is cleaned up elsewhere
    image_path = Column(Text, nullable=False)

    # AI payload, stored as-is
    results = Column(JSON, nullable=False)

    original_image_url = Column(Text, nullable=True)
    analysis_image_url = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_analyses_user_type_seq", "user_id", "type", "user_sequence_number"),
    )

    def __repr__(self):
        return (
            f"<Analysis(id={self.id}, type='{self.type}', "
            f"user_id={self.user_id}, seq={self.user_sequence_number})>"
        )
