from flask import Blueprint, request, jsonify
from app.services.booking_service import BookingService
from app.utils.decorators import token_optional, token_required
from app.utils.errors import InvalidTimeRange, MissingFields
from app.utils.payload import json_body
from app.utils.timeutil import parse_iso8601

bookings_bp = Blueprint('bookings', __name__)


def _parse_times(data):
    missing = [f for f in ('startTime', 'endTime') if not data.get(f)]
    if missing:
        raise MissingFields(missing)
    try:
        start = parse_iso8601(data['startTime'])
        end = parse_iso8601(data['endTime'])
    except ValueError as e:
        raise InvalidTimeRange(str(e))
    return start, end


@bookings_bp.route('', methods=['GET'])
@token_optional
def list_bookings(principal):
    bookings = BookingService.list_bookings(room_id=request.args.get('roomId', type=int))
    return jsonify([b.to_dict() for b in bookings])


@bookings_bp.route('', methods=['POST'])
@token_required
def create_booking(principal):
    data = json_body()
    if not data.get('roomId'):
        raise MissingFields(['roomId'] + [f for f in ('startTime', 'endTime') if not data.get(f)])
    start, end = _parse_times(data)

    booking = BookingService().create_booking(
        principal,
        room_id=data['roomId'],
        start_time=start,
        end_time=end,
        title=data.get('title'),
        user_email=data.get('userEmail')
    )
    return jsonify(booking.to_dict()), 201


@bookings_bp.route('/<int:booking_id>', methods=['PUT'])
@token_required
def update_booking(principal, booking_id):
    data = json_body()
    start, end = _parse_times(data)

    booking = BookingService().update_booking(
        principal,
        booking_id,
        start_time=start,
        end_time=end,
        title=data.get('title')
    )
    return jsonify(booking.to_dict()), 200


@bookings_bp.route('/<int:booking_id>', methods=['DELETE'])
@token_required
def delete_booking(principal, booking_id):
    BookingService().delete_booking(principal, booking_id)
    return jsonify({'success': True}), 200
