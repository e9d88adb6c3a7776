from datetime import date
from decimal import Decimal

from app.models import FieldOwner
from app.schemas import BookingCreate, BookingUpdate
from app.services.booking_service import BookingService
from app.services.owner_profile_service import OwnerProfileService
from app.services.payment_service import PaymentService


class TestPaymentService:
    def test_list_payments_with_method_name(
        self, db, funded_customer, other_customer, field
    ) -> None:
        booking_service = BookingService(db)
        created = booking_service.create_booking(
            BookingCreate(
                user_id=funded_customer.id,
                field_id=field.id,
                booking_date=date(2025, 6, 1),
                start_time="08:00",
                end_time="09:00",
            )
        )
        booking_service.update_booking(created.booking_id, BookingUpdate(status="cancelled"))

        payments = PaymentService(db).list_payments()
        assert len(payments) == 1
        assert payments[0].method_name == "wallet"
        assert payments[0].amount == Decimal("20.00")
        assert payments[0].status == "refunded"

        assert PaymentService(db).list_payments(other_customer.id) == []


class TestOwnerProfileService:
    def test_creates_profile_once(self, db, user_factory) -> None:
        owner_user = user_factory("Morgan", role="owner")
        service = OwnerProfileService(db)

        owner, created = service.ensure_owner_profile(owner_user.id, "Morgan", phone="555-0100")
        assert created
        assert owner.business_name == "Field Business - Morgan"
        assert owner.phone == "555-0100"

        again, created_again = service.ensure_owner_profile(owner_user.id, "Someone else")
        assert not created_again
        assert again.id == owner.id
        assert again.business_name == "Field Business - Morgan"
        assert db.query(FieldOwner).count() == 1

    def test_default_business_name(self, db, user_factory) -> None:
        owner_user = user_factory("Avery", role="owner")
        owner, _ = OwnerProfileService(db).ensure_owner_profile(owner_user.id)
        assert owner.business_name == "Field Business - Owner"
