import enum

from .base import BaseModel, db, isoformat


class CommentContext(enum.Enum):
    REQUEST = 'request'
    SCHEDULED_MAINTENANCE = 'scheduled_maintenance'


class Comment(BaseModel):
    """A note on a request or scheduled task, from a user or a public-link visitor."""

    __tablename__ = 'comments'

    context_type = db.Column(db.String(30), nullable=False)
    context_id = db.Column(db.Integer, nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_internal = db.Column(db.Boolean, default=False, nullable=False)

    sender_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    external_name = db.Column(db.String(100))
    external_phone = db.Column(db.String(20))

    sender = db.relationship('User')

    __table_args__ = (db.Index('ix_comments_context', 'context_type', 'context_id'),)

    @classmethod
    def for_context(cls, context_type, context_id, include_internal=True):
        query = cls.query.filter_by(context_type=context_type, context_id=context_id)
        if not include_internal:
            query = query.filter_by(is_internal=False)
        return query.order_by(cls.created_at.asc(), cls.id.asc()).all()

    @property
    def author_name(self):
        if self.sender is not None:
            return self.sender.full_name
        return self.external_name or 'Anonymous'

    def to_dict(self, public=False):
        data = {
            'id': self.id,
            'message': self.message,
            'author_name': self.author_name,
            'is_external': self.sender_id is None,
            'created_at': isoformat(self.created_at),
        }
        if not public:
            data['is_internal'] = self.is_internal
            data['sender'] = self.sender.summary() if self.sender else None
            data['external_phone'] = self.external_phone
        return data
