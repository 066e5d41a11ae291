from physiocare.db import SessionLocal, Base, engine
from physiocare.seed import seed

Base.metadata.create_all(bind=engine)

if __name__ == "__main__":
	db = SessionLocal()
	try:
		counts = seed(db)
	finally:
		db.close()
	print(f"Seeded sample data: {counts}")
