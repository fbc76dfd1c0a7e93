from fastapi import APIRouter, Depends, HTTPException

from booking_assistant.api.schemas import (
    ChatRoomSchema,
    CreateChatRoomRequestSchema,
    DraftSchema,
    TurnRequestSchema,
    TurnResponseSchema,
    appointment_schema,
)
from booking_assistant.application.exceptions import IncompleteDraft, NotFound
from booking_assistant.application.ports.business_directory import BusinessDirectoryPort
from booking_assistant.application.ports.conversation_store import ConversationStorePort
from booking_assistant.application.use_cases.conversation_turn import ConversationTurnUseCase
from booking_assistant.domain.entities.message import UserContext
from booking_assistant.wiring.dependencies import (
    get_business_directory,
    get_chat_room_store,
    get_conversation_turn_use_case,
)

router = APIRouter()


@router.post("/chat-rooms", response_model=ChatRoomSchema, status_code=201)
def create_chat_room(
    req: CreateChatRoomRequestSchema,
    store: ConversationStorePort = Depends(get_chat_room_store),
    directory: BusinessDirectoryPort = Depends(get_business_directory),
):
    if directory.get_business_profile(req.business_id) is None:
        raise HTTPException(status_code=404, detail=f"Business {req.business_id} not found")
    room = store.create_chat_room(req.business_id, req.user_id)
    return ChatRoomSchema(id=room.id, business_id=room.business_id, user_id=room.user_id)


@router.post("/chat-rooms/{chat_room_id}/turns", response_model=TurnResponseSchema)
def advance_turn(
    chat_room_id: str,
    req: TurnRequestSchema,
    uc: ConversationTurnUseCase = Depends(get_conversation_turn_use_case),
):
    user_context = UserContext(**req.user_context.model_dump()) if req.user_context else None
    try:
        result = uc.handle(chat_room_id, req.message, user_context)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IncompleteDraft as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TurnResponseSchema(
        draft=DraftSchema.model_validate(result.draft.to_dict()),
        reply_text=result.reply_text,
        appointment=appointment_schema(result.appointment.to_dict()) if result.appointment else None,
    )
