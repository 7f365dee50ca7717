"""Reviews domain load test scenarios.

Stateful SequentialTaskSet journeys covering the two-way review of a
booking, moderation with disputes, and read traffic on party profiles.
Steps execute in order — each depends on the previous step succeeding.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    booking_data,
    flag_reason,
    photo_refs,
    rating,
    response_text,
    review_comment,
    tags_for,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BookingReviewState

MODERATOR_ID = "moderator-lt"


class _BookingJourney(SequentialTaskSet):
    def on_start(self):
        self.state = BookingReviewState()

    def _seed_booking(self):
        payload = booking_data()
        with self.client.post(
            "/reviews/dev/bookings",
            json=payload,
            catch_response=True,
            name="POST /reviews/dev/bookings",
        ) as resp:
            if resp.status_code == 201:
                self.state.booking_id = payload["booking_id"]
                self.state.client_id = payload["client_id"]
                self.state.supplier_id = payload["supplier_id"]
            else:
                resp.failure(f"Booking seed failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _submit(self, reviewer_id, reviewer_role, subject_id, subject_role):
        score = rating()
        payload = {
            "booking_id": self.state.booking_id,
            "reviewer_id": reviewer_id,
            "reviewer_role": reviewer_role,
            "subject_id": subject_id,
            "subject_role": subject_role,
            "rating": score,
            "comment": review_comment(),
            "tags": tags_for(subject_role),
            "photo_refs": photo_refs(),
        }
        with self.client.post("/reviews", json=payload, catch_response=True, name="POST /reviews") as resp:
            if resp.status_code == 201:
                self.state.ratings_given.append(score)
                return resp.json()["review_id"]
            resp.failure(f"Submit failed: {resp.status_code}: {extract_error_detail(resp)}")
            self.interrupt()

    def _moderate(self, review_id, action, reason=None):
        with self.client.put(
            f"/reviews/{review_id}/moderate",
            json={"moderator_id": MODERATOR_ID, "action": action, "reason": reason},
            catch_response=True,
            name="PUT /reviews/{id}/moderate",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Moderation failed: {resp.status_code}: {extract_error_detail(resp)}")


class TwoWayReviewJourney(_BookingJourney):
    """Seed booking -> Client reviews -> Supplier reviews -> Approve both -> Respond -> Read rating.

    Generates ReviewSubmitted (x2), ReviewApproved (x2),
    SubjectRatingRecalculated (x2) and ReviewResponded.
    """

    @task
    def seed_booking(self):
        self._seed_booking()

    @task
    def client_reviews_supplier(self):
        self.state.client_review_id = self._submit(
            self.state.client_id, "Client", self.state.supplier_id, "Supplier"
        )

    @task
    def supplier_reviews_client(self):
        self.state.supplier_review_id = self._submit(
            self.state.supplier_id, "Supplier", self.state.client_id, "Client"
        )

    @task
    def approve_both(self):
        self._moderate(self.state.client_review_id, "Approve")
        self._moderate(self.state.supplier_review_id, "Approve")

    @task
    def supplier_responds(self):
        with self.client.put(
            f"/reviews/{self.state.client_review_id}/response",
            json={"subject_id": self.state.supplier_id, "response": response_text()},
            catch_response=True,
            name="PUT /reviews/{id}/response",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Response failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def read_supplier_rating(self):
        self.client.get(
            f"/reviews/subjects/Supplier/{self.state.supplier_id}/rating",
            name="GET /reviews/subjects/{role}/{id}/rating",
        )
        self.interrupt()


class DisputeJourney(_BookingJourney):
    """Seed booking -> Client reviews -> Approve -> Supplier flags -> Moderator resolves."""

    @task
    def seed_booking(self):
        self._seed_booking()

    @task
    def client_reviews_supplier(self):
        self.state.client_review_id = self._submit(
            self.state.client_id, "Client", self.state.supplier_id, "Supplier"
        )

    @task
    def approve(self):
        self._moderate(self.state.client_review_id, "Approve")

    @task
    def supplier_flags(self):
        with self.client.post(
            f"/reviews/{self.state.client_review_id}/flag",
            json={"flagged_by": self.state.supplier_id, "reason": flag_reason()},
            catch_response=True,
            name="POST /reviews/{id}/flag",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Flag failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def resolve(self):
        with self.client.put(
            f"/reviews/{self.state.client_review_id}/resolve",
            json={"moderator_id": MODERATOR_ID, "outcome": "Reject", "notes": "Dispute upheld by moderator"},
            catch_response=True,
            name="PUT /reviews/{id}/resolve",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Resolve failed: {resp.status_code}: {extract_error_detail(resp)}")
        self.interrupt()


class ProfileBrowsingJourney(_BookingJourney):
    """Seed and review a booking, then page through the supplier's public reviews."""

    @task
    def seed_booking(self):
        self._seed_booking()

    @task
    def review_and_approve(self):
        self.state.client_review_id = self._submit(
            self.state.client_id, "Client", self.state.supplier_id, "Supplier"
        )
        self._moderate(self.state.client_review_id, "Approve")

    @task
    def browse(self):
        self.client.get(
            f"/reviews/subjects/Supplier/{self.state.supplier_id}?limit=10",
            name="GET /reviews/subjects/{role}/{id}",
        )
        self.client.get(
            f"/reviews/bookings/{self.state.booking_id}",
            name="GET /reviews/bookings/{id}",
        )
        self.client.get("/reviews/moderation-queue?limit=20", name="GET /reviews/moderation-queue")
        self.interrupt()


class ReviewsUser(HttpUser):
    """Review traffic: mostly happy-path two-way reviews, some disputes, plenty of reads."""

    wait_time = between(1, 3)
    tasks = {
        TwoWayReviewJourney: 5,
        ProfileBrowsingJourney: 3,
        DisputeJourney: 1,
    }
