"""
Account model shared by root admins, sub-admins and clients.
The role column decides which optional fields are meaningful.
"""

from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey, Index, text
from support_directory.models.common import CommonModel


class Account(CommonModel):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    username = Column(String(64), nullable=True, unique=True)
    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(32), nullable=True, index=True)
    name = Column(String(128), nullable=True)
    role = Column(String(16), nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    token_version = Column(Integer, nullable=False, default=0, server_default=text("0"))
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    must_change_password = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    # branch reference and the snapshot copied at creation time
    branch_ref_id = Column(Integer, ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    branch_name = Column(String(128), nullable=True)
    branch_wa_link = Column(String(512), nullable=True)

    parent_sub_admin_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)

    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_expires = Column(TIMESTAMP(timezone=True), nullable=True)
    last_login_at = Column(TIMESTAMP(timezone=True), nullable=True)
    last_logout_at = Column(TIMESTAMP(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Account(id={self.id}, user_id='{self.user_id}', role='{self.role}', is_active={self.is_active})>"

    __table_args__ = (
        Index('idx_accounts_role_active', 'role', 'is_active'),
    )
