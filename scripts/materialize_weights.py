# scripts/materialize_weights.py
# 既存プロパティに不足している FeatureWeight 行を補完する（何度実行しても安全）
from bucktrax.db import SessionLocal, init_db
from bucktrax.services.weights.resolver import FeatureWeightResolver

init_db()
db = SessionLocal()
try:
    added = FeatureWeightResolver(db).materialize_all()
    print("feature weight rows added:", added)
finally:
    db.close()
