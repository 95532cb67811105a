from aiogram.fsm.state import State, StatesGroup


class LoginStates(StatesGroup):
    waiting_email = State()
    waiting_password = State()


class SearchStates(StatesGroup):
    waiting_query = State()


class ProductFormStates(StatesGroup):
    waiting_name = State()
    waiting_description = State()
    waiting_price = State()
    waiting_original_price = State()
    waiting_category = State()
    waiting_stock = State()
    waiting_images = State()
    waiting_fast_sell = State()
    waiting_offer_percentage = State()
    waiting_offer_end_date = State()
    waiting_tags = State()
    waiting_specifications = State()
    waiting_features = State()
    waiting_confirm = State()


class EditProductStates(StatesGroup):
    waiting_field = State()


class CreateStoreStates(StatesGroup):
    waiting_name = State()
    waiting_description = State()
    waiting_location = State()
    waiting_phone = State()
    waiting_confirm = State()


class OrderStatusStates(StatesGroup):
    waiting_order = State()
    waiting_status = State()
