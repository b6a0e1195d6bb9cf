from app.llm.workflow.stages.chat_agent import ChatAgent
from app.llm.workflow.stages.document_importer import DocumentImporter
from app.llm.workflow.stages.error_handler import error_handler_node
from app.llm.workflow.stages.initializers import (
    ApiInitializer,
    DocumentInitializer,
    JsonInitializer,
    initializer_router_node,
    scratch_initializer_node,
)
from app.llm.workflow.stages.save import SaveStage
