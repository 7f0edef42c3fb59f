from sqlalchemy import Column, Integer, String
from support_directory.models.common import CommonModel


class Branch(CommonModel):
    """Support branch and the messaging link users are sent to"""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    branch_id = Column(String(64), nullable=False, unique=True, index=True)
    branch_name = Column(String(128), nullable=False, unique=True)
    wa_link = Column(String(512), nullable=False)

    def __repr__(self):
        return f"<Branch(id={self.id}, branch_id='{self.branch_id}', branch_name='{self.branch_name}')>"
