"""HTTP tests for the reservation endpoints."""

from sqlalchemy.exc import OperationalError

from conftest import reservation_payload
from hotel_service.app.enum.reservation_enum import ReservationStatus, RoomStatus

BASE_URL = "/api/reservations"


def create_via_api(client, seed, **overrides):
    response = client.post(BASE_URL, json=reservation_payload(seed, **overrides))
    assert response.status_code == 201, response.text
    return response.json()["reservation"]


class TestCreateEndpoint:
    """Tests for POST /api/reservations."""

    def test_created(self, client, seed):
        response = client.post(BASE_URL, json=reservation_payload(
            seed, discountType="PERCENTAGE", discountValue=10,
            serviceCharge=500, tax=200, advanceAmount=10000, totalAmount=14200,
        ))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Reservation created successfully"

        reservation = body["reservation"]
        assert reservation["bookingNumber"].startswith("BK")
        assert reservation["bookingNumber"].endswith("001")
        assert reservation["checkInDate"] == "2030-06-01T00:00:00"
        assert reservation["numberOfNights"] == 3
        assert reservation["totalAmount"] == 14200
        assert reservation["balanceAmount"] == 4200
        assert reservation["paymentStatus"] == "PARTIAL"
        assert reservation["reservationStatus"] == "CONFIRMED"
        assert reservation["guestCount"] == 2
        assert reservation["customer"]["fullName"] == "Jane Perera"
        assert reservation["room"]["roomNumber"] == "101"
        assert reservation["roomClass"]["name"] == "Deluxe"

    def test_timezone_offsets_normalized_to_utc(self, client, seed):
        reservation = create_via_api(
            client, seed,
            checkInDate="2030-06-01T05:30:00+05:30",
            checkOutDate="2030-06-04T05:30:00+05:30",
        )

        assert reservation["checkInDate"] == "2030-06-01T00:00:00"
        assert reservation["checkOutDate"] == "2030-06-04T00:00:00"

    def test_missing_fields(self, client, seed):
        payload = reservation_payload(seed)
        del payload["roomId"]
        del payload["paymentMethod"]

        response = client.post(BASE_URL, json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "MISSING_FIELD"
        assert body["details"] == "roomId, paymentMethod"

    def test_invalid_date_format(self, client, seed):
        response = client.post(BASE_URL, json=reservation_payload(seed, checkInDate="01/06/2030"))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_room_unavailable(self, client, seed):
        create_via_api(client, seed)

        response = client.post(BASE_URL, json=reservation_payload(
            seed, checkInDate="2030-06-03T00:00:00", checkOutDate="2030-06-07T00:00:00"))

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "ROOM_UNAVAILABLE"
        assert body["error"] == "Room is not available for the selected dates"
        assert "101" in body["details"]


class TestReadEndpoints:
    """Tests for listing, detail and lookups."""

    def test_list(self, client, seed):
        create_via_api(client, seed)
        create_via_api(client, seed, room="102", customerId=seed["ravi"].id)

        response = client.get(BASE_URL, params={"search": "ravi", "limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["reservations"]) == 1
        assert body["reservations"][0]["customer"]["firstName"] == "Ravi"
        assert body["pagination"]["totalCount"] == 1
        assert body["stats"]["totalReservations"] == 2
        assert body["stats"]["pendingReservations"] == 2

    def test_list_invalid_date(self, client, seed):
        response = client.get(BASE_URL, params={"dateFrom": "yesterday"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DATE"

    def test_detail(self, client, seed):
        created = create_via_api(client, seed)

        response = client.get(f"{BASE_URL}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["reservation"]["bookingNumber"] == created["bookingNumber"]

    def test_detail_invalid_id(self, client, seed):
        response = client.get(f"{BASE_URL}/abc")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_detail_not_found(self, client, seed):
        response = client.get(f"{BASE_URL}/999")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert "999" in body["details"]

    def test_status_lookup(self, client):
        response = client.get(f"{BASE_URL}/status-lookup")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert {"id": "CHECKED_IN", "name": "Checked In"} in response.json()["statuses"]

    def test_payment_method_lookup(self, client):
        response = client.get(f"{BASE_URL}/payment-method-lookup")

        assert response.json()["success"] is True
        ids = [item["id"] for item in response.json()["paymentMethods"]]
        assert ids == ["CASH", "CARD", "CREDIT_CARD", "BANK_TRANSFER", "MOBILE_PAYMENT", "ONLINE"]


class TestUpdateEndpoints:
    """Tests for PUT /api/reservations and /{id}/edit."""

    def test_generic_update_requires_id(self, client, seed):
        response = client.put(BASE_URL, json={"adults": 3})

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_FIELD"

    def test_generic_update(self, client, seed):
        created = create_via_api(client, seed)

        response = client.put(BASE_URL, json={"id": created["id"], "baseRoomRate": 6000})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Reservation updated successfully"
        assert body["reservation"]["totalRoomCharge"] == 18000
        assert body["reservation"]["totalAmount"] == 18000

    def test_generic_update_not_found(self, client, seed):
        response = client.put(BASE_URL, json={"id": 404, "adults": 1})

        assert response.status_code == 404

    def test_edit_view(self, client, seed):
        created = create_via_api(client, seed)

        response = client.get(f"{BASE_URL}/{created['id']}/edit")

        assert response.status_code == 200
        body = response.json()
        assert body["reservation"]["id"] == created["id"]
        assert [room["roomNumber"] for room in body["availableRooms"]] == ["101", "102", "201"]
        assert [rc["name"] for rc in body["roomClasses"]] == ["Deluxe", "Suite"]
        assert body["roomClasses"][0]["ratePerNight"] == 5000

    def test_apply_edit_with_customer_patch(self, client, db, seed):
        created = create_via_api(client, seed)

        response = client.put(f"{BASE_URL}/{created['id']}/edit", json={
            "roomId": seed["rooms"]["102"].id,
            "customer": {"email": "jane.perera@example.com"},
        })

        assert response.status_code == 200
        reservation = response.json()["reservation"]
        assert reservation["room"]["roomNumber"] == "102"
        assert reservation["customer"]["email"] == "jane.perera@example.com"
        assert reservation["customer"]["phone"] == "0771234567"

    def test_failed_commit_rolls_back_every_change(self, client, db, seed, monkeypatch):
        """Test a failed commit leaves the customer, the rooms and the reservation untouched."""
        created = create_via_api(client, seed)
        seed["rooms"]["101"].status = RoomStatus.OCCUPIED.value
        db.commit()

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", failing_commit)

        response = client.put(f"{BASE_URL}/{created['id']}/edit", json={
            "roomId": seed["rooms"]["102"].id,
            "customer": {"phone": "0700000000"},
        })

        assert response.status_code == 500
        assert response.json()["code"] == "OPERATION_FAILED"
        for row in (seed["jane"], seed["rooms"]["101"], seed["rooms"]["102"]):
            db.refresh(row)
        assert seed["jane"].phone == "0771234567"
        assert seed["rooms"]["101"].status == RoomStatus.OCCUPIED.value
        assert seed["rooms"]["102"].status == RoomStatus.AVAILABLE.value
        assert client.get(f"{BASE_URL}/{created['id']}").json()["reservation"]["roomId"] == created["roomId"]

    def test_edit_invalid_id(self, client, seed):
        response = client.get(f"{BASE_URL}/x1/edit")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_edit_cancelled_rejected(self, client, seed):
        created = create_via_api(client, seed)
        client.delete(BASE_URL, params={"id": created["id"]})

        response = client.put(f"{BASE_URL}/{created['id']}/edit", json={"adults": 1})

        assert response.status_code == 400
        assert response.json()["code"] == "IMMUTABLE_STATE"


class TestCancelEndpoint:
    """Tests for DELETE /api/reservations."""

    def test_cancel(self, client, db, seed):
        created = create_via_api(client, seed)

        response = client.delete(BASE_URL, params={"id": created["id"], "reason": "Flight cancelled"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Reservation cancelled successfully"
        assert body["reservation"]["reservationStatus"] == "CANCELLED"
        assert body["reservation"]["cancellationReason"] == "Flight cancelled"
        db.refresh(seed["rooms"]["101"])
        assert seed["rooms"]["101"].status == RoomStatus.AVAILABLE.value

    def test_cancel_twice(self, client, seed):
        created = create_via_api(client, seed)
        client.delete(BASE_URL, params={"id": created["id"]})

        response = client.delete(BASE_URL, params={"id": created["id"]})

        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_CANCELLED"

    def test_cancel_requires_id(self, client, seed):
        response = client.delete(BASE_URL)

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_FIELD"

    def test_cancel_checked_out(self, client, make_reservation):
        reservation = make_reservation(status=ReservationStatus.CHECKED_OUT)

        response = client.delete(BASE_URL, params={"id": reservation.id})

        assert response.status_code == 400
        assert response.json()["code"] == "IMMUTABLE_STATE"


class TestStayEndpoints:
    """Tests for check-in and check-out."""

    def test_check_in_then_out(self, client, db, seed):
        created = create_via_api(client, seed)
        url = f"{BASE_URL}/{created['id']}"

        check_in = client.post(f"{url}/checkin", json={
            "guestConfirmation": True,
            "identityVerified": True,
            "additionalCharges": 1000,
            "staffNotes": "Early arrival",
        })
        assert check_in.status_code == 200
        assert check_in.json()["reservation"]["reservationStatus"] == "CHECKED_IN"
        assert check_in.json()["reservation"]["totalAmount"] == 16000
        db.refresh(seed["rooms"]["101"])
        assert seed["rooms"]["101"].status == RoomStatus.OCCUPIED.value

        check_out = client.post(f"{url}/checkout", json={"paymentAmount": 16000})
        assert check_out.status_code == 200
        reservation = check_out.json()["reservation"]
        assert reservation["reservationStatus"] == "CHECKED_OUT"
        assert reservation["paymentStatus"] == "PAID"
        assert reservation["balanceAmount"] == 0
        db.refresh(seed["rooms"]["101"])
        assert seed["rooms"]["101"].status == RoomStatus.AVAILABLE.value

    def test_check_in_unverified(self, client, seed):
        created = create_via_api(client, seed)

        response = client.post(f"{BASE_URL}/{created['id']}/checkin", json={"guestConfirmation": True})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_check_out_before_check_in(self, client, seed):
        created = create_via_api(client, seed)

        response = client.post(f"{BASE_URL}/{created['id']}/checkout", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"


class TestStayPreviewEndpoints:
    """Tests for GET /{id}/checkin and GET /{id}/checkout."""

    def test_check_in_preview(self, client, seed):
        created = create_via_api(client, seed)

        response = client.get(f"{BASE_URL}/{created['id']}/checkin")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        reservation = body["reservation"]
        assert reservation["id"] == created["id"]
        assert reservation["isEarlyCheckIn"] is True
        assert reservation["earlyCheckInFee"] > 0
        assert reservation["lateCheckInFee"] == 0
        assert "currentDateTime" in reservation

    def test_check_in_preview_of_checked_in_guest(self, client, seed):
        created = create_via_api(client, seed)
        client.post(f"{BASE_URL}/{created['id']}/checkin", json={
            "guestConfirmation": True, "identityVerified": True,
        })

        response = client.get(f"{BASE_URL}/{created['id']}/checkin")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_check_out_preview(self, client, seed):
        created = create_via_api(client, seed, advanceAmount=5000)
        client.post(f"{BASE_URL}/{created['id']}/checkin", json={
            "guestConfirmation": True, "identityVerified": True,
        })

        response = client.get(f"{BASE_URL}/{created['id']}/checkout")

        assert response.status_code == 200
        reservation = response.json()["reservation"]
        assert reservation["lateCheckoutFee"] == 0
        assert reservation["actualStayDays"] == 1
        assert reservation["updatedTotalAmount"] == 15000
        assert reservation["finalBalanceAmount"] == 10000

    def test_check_out_preview_before_check_in(self, client, seed):
        created = create_via_api(client, seed)

        response = client.get(f"{BASE_URL}/{created['id']}/checkout")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_preview_invalid_id(self, client, seed):
        response = client.get(f"{BASE_URL}/abc/checkout")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"


class TestCalendarEndpoint:
    """Tests for GET /api/reservations/calendar."""

    def test_month(self, client, seed):
        created = create_via_api(client, seed)
        create_via_api(
            client, seed, room="102",
            checkInDate="2030-08-01T00:00:00", checkOutDate="2030-08-03T00:00:00",
        )

        response = client.get(f"{BASE_URL}/calendar", params={"month": 6, "year": 2030})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["calendar"]["startDate"] == "2030-05-26"
        assert body["calendar"]["endDate"] == "2030-07-06"
        assert [r["id"] for r in body["calendar"]["reservations"]] == [created["id"]]
        assert body["calendar"]["stats"]["totalReservations"] == 1
        assert body["filters"] == {"month": 6, "year": 2030, "roomClassId": None, "status": None}

    def test_invalid_month(self, client, seed):
        response = client.get(f"{BASE_URL}/calendar", params={"month": 13, "year": 2030})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ARGUMENT"

    def test_non_numeric_year(self, client, seed):
        response = client.get(f"{BASE_URL}/calendar", params={"month": 6, "year": "soon"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"


def test_amount_beyond_column_range_is_bad_request(client, seed):
    response = client.post(BASE_URL, json=reservation_payload(seed, baseRoomRate=1e27))

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ARGUMENT"


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"success": True, "status": "healthy"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["success"] is False
    assert response.json()["code"] == "NOT_FOUND"
