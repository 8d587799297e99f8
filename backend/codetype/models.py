from codetype import db


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    wpm = db.Column(db.Integer, nullable=False, index=True)
    accuracy = db.Column(db.Integer, nullable=False)
    mode = db.Column(db.String(20), nullable=False, default='practice')
    language = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'wpm': self.wpm,
            'accuracy': self.accuracy,
            'mode': self.mode,
            'language': self.language,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Preference(db.Model):
    __tablename__ = 'preference'
    # "<client_id>:<name>"
    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())
