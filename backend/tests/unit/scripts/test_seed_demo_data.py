"""
Unit Tests for the demo seeding script
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select

import seed_demo_data
from app.models.complaint import Complaint, ComplaintStatusHistory
from seed_demo_data import seed_complaints, status_change_time


class TestStatusChangeTime:
    def test_delay_applied(self):
        created = datetime(2024, 3, 1, 9, 0)
        now = datetime(2024, 3, 10, 9, 0)

        assert status_change_time(created, now, timedelta(hours=5)) == created + timedelta(hours=5)

    def test_capped_at_now(self):
        now = datetime(2024, 3, 10, 9, 0)
        created = now - timedelta(hours=1)

        assert status_change_time(created, now, timedelta(hours=48)) == now

    def test_submitted_just_now(self):
        now = datetime(2024, 3, 10, 9, 0)

        assert status_change_time(now, now, timedelta(hours=3)) == now + timedelta(seconds=1)


class TestSeedComplaints:
    @pytest.mark.asyncio
    async def test_newest_history_matches_status(self, db_session, test_user, admin_user, ktp_service):
        # Zero offsets: every complaint submitted at "now" and every one changed
        with patch.object(seed_demo_data.random, 'randint', return_value=0), \
                patch.object(seed_demo_data.random, 'random', return_value=0.0):
            await seed_complaints(db_session, 5)

        complaints = (await db_session.execute(select(Complaint))).scalars().all()
        assert len(complaints) == 5

        for complaint in complaints:
            histories = (await db_session.execute(
                select(ComplaintStatusHistory)
                .where(ComplaintStatusHistory.complaint_id == complaint.id)
                .order_by(ComplaintStatusHistory.created_at.desc())
            )).scalars().all()

            assert len(histories) == 2
            assert histories[0].created_at > histories[1].created_at
            assert histories[0].status == complaint.status
