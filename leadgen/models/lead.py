"""
Lead model — one row per candidate company, deduplicated by url.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func

from leadgen.config import STATUS_NEW
from leadgen.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False)
    company_name = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=STATUS_NEW, server_default=STATUS_NEW, index=True)
    scraped_data = Column(JSON, default=dict)   # sparse — see models.records.ScrapedData
    ai_analysis = Column(JSON, default=dict)    # verbatim inference output
    email_draft = Column(Text, default='')      # the only operator-editable field
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('url', name='uq_leads_url'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'company_name': self.company_name,
            'status': self.status,
            'scraped_data': self.scraped_data or {},
            'ai_analysis': self.ai_analysis or {},
            'email_draft': self.email_draft or '',
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Lead {self.id} {self.url} [{self.status}]>'
