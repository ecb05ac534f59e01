from ninja import Schema


class UserStatsSchema(Schema):
    points: int
    level: str
    events_attended: int
    achievements_count: int
    progress_to_next_level: int
    next_level_points: int
