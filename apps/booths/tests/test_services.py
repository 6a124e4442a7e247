"""
Service layer unit tests for booths app.
"""

import uuid

import pytest

from apps.booths.models import Booth, BoothMembership, BoothRole, BoothRequestStatus, Product
from apps.booths.services import (
    generate_booth_pin,
    validate_pin,
    create_booth,
    get_booth_by_id,
    get_booths_for_user,
    get_leaderboard,
    update_booth,
    delete_booth,
    regenerate_pin,
    join_booth_by_pin,
    leave_booth,
    remove_member,
    get_booth_members,
    add_product,
    update_product,
    remove_product,
    get_booth_products,
    submit_booth_request,
    list_pending_booths,
    approve_booth_request,
    reject_booth_request,
    BoothNotFoundError,
    InvalidPinError,
    DuplicatePinError,
    NotMemberError,
    LastManagerError,
    InsufficientPermissionsError,
    ProductNotFoundError,
    InvalidProductError,
    BoothRequestNotFoundError,
    BoothRequestAlreadyReviewedError,
)
from apps.ledger.models import Transaction, TransactionType


# =============================================================================
# PINs
# =============================================================================

class TestPins:

    def test_generated_pin_is_six_digits(self):
        for _ in range(50):
            pin = generate_booth_pin()
            assert pin.isdigit()
            assert len(pin) == 6
            assert pin[0] != '0'

    @pytest.mark.parametrize('pin', ['', '123', 'abcd', '12 34', '1234567890123'])
    def test_invalid_pins(self, pin):
        with pytest.raises(InvalidPinError):
            validate_pin(pin)

    def test_pin_is_stripped(self):
        assert validate_pin(' 4321 ') == '4321'


# =============================================================================
# Booth management
# =============================================================================

@pytest.mark.django_db
class TestCreateBooth:

    def test_creator_becomes_manager(self, sac_user):
        booth = create_booth(name='Chess Club', creator=sac_user)

        assert booth.pin.isdigit()
        assert booth.sales_cents == 0
        assert booth.is_manager(sac_user)

    def test_custom_pin(self, sac_user):
        booth = create_booth(name='Chess Club', creator=sac_user, pin='9999')
        assert booth.pin == '9999'

    def test_duplicate_pin_rejected(self, sac_user, booth):
        with pytest.raises(DuplicatePinError):
            create_booth(name='Copycat', creator=sac_user, pin=booth.pin)


@pytest.mark.django_db
class TestBoothQueries:

    def test_get_booth_by_id_hides_removed_products(self, booth, product):
        Product.objects.create(booth=booth, name='Old Item', price_cents=100, is_deleted=True)

        fetched = get_booth_by_id(booth_id=booth.id)
        assert [p.name for p in fetched.products.all()] == ['Granola Bar']

    def test_get_booth_by_id_not_found(self):
        with pytest.raises(BoothNotFoundError):
            get_booth_by_id(booth_id=uuid.uuid4())

    def test_booths_for_user(self, member, outsider, booth):
        assert list(get_booths_for_user(user=member)) == [booth]
        assert list(get_booths_for_user(user=outsider)) == []

    def test_leaderboard_ranks_by_sales(self, booth, manager):
        rich = Booth.objects.create(name='Bake Sale', pin='111111', sales_cents=9000)
        booth.sales_cents = 500
        booth.save()
        Booth.objects.create(name='Closed', pin='222222', sales_cents=99999, is_active=False)

        assert list(get_leaderboard()) == [rich, booth]
        assert list(get_leaderboard(limit=1)) == [rich]


@pytest.mark.django_db
class TestUpdateBooth:

    def test_manager_updates(self, booth, manager):
        updated = update_booth(booth_id=booth.id, user=manager, name='Robotics', pin='13579')
        assert updated.name == 'Robotics'
        assert updated.pin == '13579'

    def test_member_cannot_update(self, booth, member):
        with pytest.raises(InsufficientPermissionsError):
            update_booth(booth_id=booth.id, user=member, name='Hijacked')

    def test_sac_can_update_any_booth(self, booth, sac_user):
        updated = update_booth(booth_id=booth.id, user=sac_user, is_active=False)
        assert updated.is_active is False

    def test_duplicate_pin(self, booth, manager):
        Booth.objects.create(name='Other', pin='555555')
        with pytest.raises(DuplicatePinError):
            update_booth(booth_id=booth.id, user=manager, pin='555555')


@pytest.mark.django_db
class TestDeleteBooth:

    def test_booth_without_sales_is_deleted(self, booth, sac_user):
        assert delete_booth(booth_id=booth.id, user=sac_user) is True
        assert not Booth.objects.filter(id=booth.id).exists()

    def test_booth_with_sales_is_deactivated(self, booth, sac_user, member):
        Transaction.objects.create(
            buyer=member,
            booth=booth,
            amount_cents=125,
            type=TransactionType.PURCHASE,
            balance_after_cents=0,
        )

        assert delete_booth(booth_id=booth.id, user=sac_user) is False
        booth.refresh_from_db()
        assert booth.is_active is False

    def test_manager_cannot_delete(self, booth, manager):
        with pytest.raises(InsufficientPermissionsError):
            delete_booth(booth_id=booth.id, user=manager)


@pytest.mark.django_db
class TestRegeneratePin:

    def test_new_pin(self, booth, manager):
        old_pin = booth.pin
        new_pin = regenerate_pin(booth_id=booth.id, user=manager)

        booth.refresh_from_db()
        assert booth.pin == new_pin
        assert new_pin != old_pin

    def test_member_cannot_regenerate(self, booth, member):
        with pytest.raises(InsufficientPermissionsError):
            regenerate_pin(booth_id=booth.id, user=member)


# =============================================================================
# Membership
# =============================================================================

@pytest.mark.django_db
class TestMembership:

    def test_join_by_pin(self, booth, outsider):
        membership, created = join_booth_by_pin(user=outsider, pin=booth.pin)

        assert created is True
        assert membership.booth == booth
        assert membership.role == BoothRole.MEMBER

    def test_join_twice_returns_existing(self, booth, member):
        membership, created = join_booth_by_pin(user=member, pin=booth.pin)

        assert created is False
        assert BoothMembership.objects.filter(user=member, booth=booth).count() == 1

    def test_wrong_pin(self, booth, outsider):
        with pytest.raises(InvalidPinError):
            join_booth_by_pin(user=outsider, pin='000000')

    def test_inactive_booth_cannot_be_joined(self, booth, outsider):
        booth.is_active = False
        booth.save()
        with pytest.raises(InvalidPinError):
            join_booth_by_pin(user=outsider, pin=booth.pin)

    def test_member_leaves(self, booth, member):
        leave_booth(booth_id=booth.id, user=member)
        assert not booth.has_member(member)

    def test_only_manager_cannot_leave(self, booth, manager):
        with pytest.raises(LastManagerError):
            leave_booth(booth_id=booth.id, user=manager)

    def test_non_member_cannot_leave(self, booth, outsider):
        with pytest.raises(NotMemberError):
            leave_booth(booth_id=booth.id, user=outsider)

    def test_manager_removes_member(self, booth, manager, member):
        remove_member(booth_id=booth.id, user_id=member.id, removed_by=manager)
        assert not booth.has_member(member)

    def test_member_cannot_remove(self, booth, manager, member):
        with pytest.raises(InsufficientPermissionsError):
            remove_member(booth_id=booth.id, user_id=manager.id, removed_by=member)

    def test_sac_cannot_remove_only_manager(self, booth, manager, sac_user):
        with pytest.raises(LastManagerError):
            remove_member(booth_id=booth.id, user_id=manager.id, removed_by=sac_user)

    def test_members_listed_managers_first(self, booth, manager, member):
        roles = [m.role for m in get_booth_members(booth_id=booth.id)]
        assert roles == [BoothRole.MANAGER, BoothRole.MEMBER]


# =============================================================================
# Products
# =============================================================================

@pytest.mark.django_db
class TestProducts:

    def test_member_adds_product(self, booth, member):
        product = add_product(booth_id=booth.id, user=member, name=' Trail Mix ', price_cents=300)

        assert product.name == 'Trail Mix'
        assert product.price_cents == 300
        assert product.sales_count == 0

    def test_outsider_cannot_add(self, booth, outsider):
        with pytest.raises(InsufficientPermissionsError):
            add_product(booth_id=booth.id, user=outsider, name='Spam', price_cents=100)

    @pytest.mark.parametrize('name,price', [('', 100), ('Free Thing', 0), ('Negative', -5)])
    def test_invalid_product(self, booth, member, name, price):
        with pytest.raises(InvalidProductError):
            add_product(booth_id=booth.id, user=member, name=name, price_cents=price)

    def test_update_price(self, booth, member, product):
        updated = update_product(
            booth_id=booth.id, product_id=product.id, user=member, price_cents=150
        )
        assert updated.price_cents == 150

    def test_remove_is_soft_delete(self, booth, member, product):
        remove_product(booth_id=booth.id, product_id=product.id, user=member)

        product.refresh_from_db()
        assert product.is_deleted is True
        assert product.deleted_at is not None
        assert list(get_booth_products(booth_id=booth.id)) == []

    def test_removed_product_cannot_be_edited(self, booth, member, product):
        remove_product(booth_id=booth.id, product_id=product.id, user=member)
        with pytest.raises(ProductNotFoundError):
            update_product(booth_id=booth.id, product_id=product.id, user=member, name='Back')

    def test_product_of_other_booth_not_found(self, booth, member):
        other = Booth.objects.create(name='Other', pin='777777')
        foreign = Product.objects.create(booth=other, name='Foreign', price_cents=100)

        with pytest.raises(ProductNotFoundError):
            remove_product(booth_id=booth.id, product_id=foreign.id, user=member)


# =============================================================================
# Teacher booth requests
# =============================================================================

@pytest.mark.django_db
class TestBoothRequests:

    def test_submit(self):
        request = submit_booth_request(
            teacher_name='Mr. Chen',
            teacher_email='chen@school.example.com',
            initiative_name='Art Show',
            products=[{'name': 'Print', 'price_cents': 500}],
        )

        assert request.status == BoothRequestStatus.PENDING
        assert request.products == [{'name': 'Print', 'price_cents': 500}]
        assert list(list_pending_booths()) == [request]

    def test_submit_rejects_bad_price(self):
        with pytest.raises(InvalidProductError):
            submit_booth_request(
                teacher_name='Mr. Chen',
                teacher_email='chen@school.example.com',
                initiative_name='Art Show',
                products=[{'name': 'Print', 'price_cents': 0}],
            )

    def test_approve_creates_booth_and_products(self, pending_request, sac_user):
        booth = approve_booth_request(request_id=pending_request.id, reviewer=sac_user)

        assert booth.name == 'Grade 10 Fundraiser'
        assert booth.is_manager(sac_user)
        assert sorted(p.name for p in booth.products.all()) == ['Cupcake', 'Hot Chocolate']

        pending_request.refresh_from_db()
        assert pending_request.status == BoothRequestStatus.APPROVED
        assert pending_request.booth == booth
        assert pending_request.reviewed_by == sac_user
        assert list(list_pending_booths()) == []

    def test_reject_keeps_record(self, pending_request, sac_user):
        reject_booth_request(request_id=pending_request.id, reviewer=sac_user, reason='Duplicate')

        pending_request.refresh_from_db()
        assert pending_request.status == BoothRequestStatus.REJECTED
        assert pending_request.rejection_reason == 'Duplicate'
        assert list(list_pending_booths(status=BoothRequestStatus.REJECTED)) == [pending_request]

    def test_cannot_review_twice(self, pending_request, sac_user):
        approve_booth_request(request_id=pending_request.id, reviewer=sac_user)
        with pytest.raises(BoothRequestAlreadyReviewedError):
            reject_booth_request(request_id=pending_request.id, reviewer=sac_user)

    def test_unknown_request(self, sac_user):
        with pytest.raises(BoothRequestNotFoundError):
            approve_booth_request(request_id=uuid.uuid4(), reviewer=sac_user)

    def test_student_cannot_review(self, pending_request, manager):
        with pytest.raises(InsufficientPermissionsError):
            approve_booth_request(request_id=pending_request.id, reviewer=manager)
