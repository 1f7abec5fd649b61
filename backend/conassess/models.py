from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, JSON, Index
from .db import Base


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	requests_used = Column(Integer, default=0, nullable=False)
	requests_limit = Column(Integer, default=1000, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# JWT "jti"
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class UserProfile(Base):
	__tablename__ = "user_profiles"
	username = Column(String(128), primary_key=True)
	name = Column(String(256), nullable=False)
	email = Column(String(256), nullable=False, index=True)
	job_role = Column(String(256), nullable=False)
	experience = Column(String(16), nullable=False)  # Junior | Mid | Senior
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AssessmentResult(Base):
	__tablename__ = "test_results"
	# Rows are only ever inserted; dashboards read them back by username
	id = Column(Integer, primary_key=True, autoincrement=True)
	username = Column(String(128), nullable=False)
	topic = Column(String(256), nullable=False)
	difficulty = Column(String(16), nullable=False)  # Easy | Medium | Hard
	total_steps = Column(Integer, nullable=False)
	correct_answers = Column(Integer, nullable=False)
	score = Column(Integer, nullable=False)  # percentage 0-100
	steps = Column(JSON, nullable=False)
	ai_summary = Column(Text, default="", nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	__table_args__ = (Index("ix_test_results_username_created", "username", "created_at"),)
