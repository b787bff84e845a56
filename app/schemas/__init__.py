from app.schemas.apartment import ApartmentCreate, ApartmentResponse
from app.schemas.stay import StayCreate, StayUpdate, StayResponse, MonthGroupResponse, YearGroupResponse
from app.schemas.filters import StayFilter
from app.schemas.export import CalendarCellResponse, MonthPaintResponse, SaveOutcomeResponse
