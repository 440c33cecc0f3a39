"""RentCar backend: car-rental booking API over Firestore"""
