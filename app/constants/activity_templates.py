from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- STOCK ----------------
    ActivityCode.STOCK_MOVEMENT_CREATED:
        "{actor_name} recorded {movement_type} {number}: "
        "{quantity} of supply {supply_id} ({from_location} -> {to_location})",
}
