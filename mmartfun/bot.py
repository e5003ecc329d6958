import discord
from discord import app_commands
from discord.ext import commands
import logging
import asyncio
import dataclasses
from typing import Dict, Optional
from pathlib import Path

from .config_manager import ConfigManager
from .data_manager import PreferenceStore
from .models import GameMode, Language, Operation, SessionSnapshot, Winner
from .quiz_controller import QuizController
from .sound_player import SoundPlayer

BOARD_REFRESH_SECONDS = 5

COLOR_RUNNING = 0xf59e0b
COLOR_FINISHED = 0x22c55e
COLOR_IDLE = 0x64748b
COLOR_ERROR = 0xff0000

LABELS = {
    Language.VI: {
        'title': "MMart Fun",
        'solo': "1 Người",
        'duel': "2 Người",
        'question': "Câu {current}/{total}",
        'time': "⏱ Thời gian",
        'correct_count': "Đúng",
        'player1': "Người chơi 1",
        'player2': "Người chơi 2",
        'tie': "Hòa",
        'winner': "👑 Kết quả",
        'finished': "Hoàn thành!",
        'idle': "Dùng /solo hoặc /duel để bắt đầu.",
        'correct': "✅ Chính xác!",
        'incorrect': "❌ Sai rồi!",
        'not_a_number': "Vui lòng nhập một số.",
        'ignored': "Không có câu hỏi nào đang chờ trả lời.",
        'answer_first': "Cần ít nhất một người trả lời trước khi sang câu tiếp.",
        'choose_language': "Chọn ngôn ngữ / Choose language",
        'language_hint': "Bạn có thể đổi ngôn ngữ sau bằng lệnh /language.",
        'language_set': "Đã chọn Tiếng Việt.",
    },
    Language.EN: {
        'title': "MMart Fun",
        'solo': "Solo",
        'duel': "Duel",
        'question': "Question {current}/{total}",
        'time': "⏱ Time",
        'correct_count': "Correct",
        'player1': "Player 1",
        'player2': "Player 2",
        'tie': "Tie",
        'winner': "👑 Result",
        'finished': "Finished!",
        'idle': "Use /solo or /duel to start.",
        'correct': "✅ Correct!",
        'incorrect': "❌ Wrong!",
        'not_a_number': "Please enter a number.",
        'ignored': "There is no question waiting for an answer.",
        'answer_first': "At least one player must answer before moving on.",
        'choose_language': "Chọn ngôn ngữ / Choose language",
        'language_hint': "You can change the language later with /language.",
        'language_set': "English selected.",
    },
}

WINNER_LABEL_KEYS = {
    Winner.PLAYER1: 'player1',
    Winner.PLAYER2: 'player2',
    Winner.TIE: 'tie',
}


# Set up comprehensive logging
def setup_logging(level=logging.INFO, log_directory: str = "logs"):
    """Set up logging to the console, logs/bot.log and logs/errors.log."""
    logs_dir = Path(log_directory)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(logs_dir / "bot.log", encoding='utf-8'),
        ]
    )

    error_handler = logging.FileHandler(logs_dir / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logging.getLogger().addHandler(error_handler)

    # Reduce discord.py noise
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.http').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = logging.getLogger(__name__)


def parse_answer(text) -> Optional[int]:
    """Parse the answer typed by a player, None if it is not a whole number."""
    if text is None:
        return None
    try:
        return int(str(text).strip())
    except ValueError:
        return None


def format_elapsed(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class LanguageSelectView(discord.ui.View):
    """Two-button language prompt shown on first launch and by /language."""

    def __init__(self, bot: "QuizBot", timeout: float = 180):
        super().__init__(timeout=timeout)
        self.bot = bot

    @discord.ui.button(label="Tiếng Việt", style=discord.ButtonStyle.success)
    async def choose_vietnamese(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.bot.handle_language_choice(interaction, Language.VI)

    @discord.ui.button(label="English", style=discord.ButtonStyle.primary)
    async def choose_english(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.bot.handle_language_choice(interaction, Language.EN)


class QuizBot(commands.Bot):
    """Discord bot hosting one arithmetic quiz session per channel"""

    def __init__(self, config=None):
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}

        self.config_manager: Optional[ConfigManager] = None
        self.preference_store: Optional[PreferenceStore] = None
        self.sound_player: Optional[SoundPlayer] = None

        self._controllers: Dict[int, QuizController] = {}
        self._board_messages: Dict[int, discord.Message] = {}
        self._last_rendered: Dict[int, SessionSnapshot] = {}
        self._answered: Dict[int, bool] = {}

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")
            self.setup_components()
            await self.setup_commands()
            logger.info("Bot setup completed successfully")
        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def setup_components(self) -> None:
        """Create the managers from the loaded configuration."""
        self.config_manager = ConfigManager()
        errors = self.config_manager.apply_config(self.app_config)
        for error in errors:
            logger.warning(f"Configuration entry ignored: {error}")

        self.preference_store = PreferenceStore(self.config_manager.get_preferences_path())
        if self.preference_store.load() is None:
            logger.info("No language preference stored, players will be asked to choose one")
        self.preference_store.subscribe(self._on_language_changed)

        self.sound_player = SoundPlayer(
            sound_directory=self.config_manager.get_sound_directory(),
            player_command=self.config_manager.get_player_command(),
            enabled=self.config_manager.is_sound_enabled()
        )

    async def setup_commands(self):
        """Register all slash commands"""
        operation_choices = [
            app_commands.Choice(name="multiply (×)", value=Operation.MULTIPLY.value),
            app_commands.Choice(name="divide (÷)", value=Operation.DIVIDE.value),
            app_commands.Choice(name="both", value=Operation.BOTH.value),
        ]

        @self.tree.command(name="help", description="Display available commands")
        async def help_command(interaction: discord.Interaction):
            await self.handle_help(interaction)

        @self.tree.command(name="solo", description="Start a solo session")
        @app_commands.choices(operation=operation_choices)
        async def solo_command(interaction: discord.Interaction, operation: Optional[app_commands.Choice[str]] = None):
            await self.handle_start(interaction, GameMode.SOLO, operation.value if operation else None)

        @self.tree.command(name="duel", description="Start a two-player duel")
        @app_commands.choices(operation=operation_choices)
        async def duel_command(interaction: discord.Interaction, operation: Optional[app_commands.Choice[str]] = None):
            await self.handle_start(interaction, GameMode.DUEL, operation.value if operation else None)

        @self.tree.command(name="answer", description="Answer the current question")
        @app_commands.describe(value="Your answer", player="Player number in a duel (1 or 2)")
        async def answer_command(interaction: discord.Interaction, value: str, player: app_commands.Range[int, 1, 2] = 1):
            await self.handle_answer(interaction, value, player)

        @self.tree.command(name="skip", description="Skip the current question (solo)")
        async def skip_command(interaction: discord.Interaction):
            await self.handle_skip(interaction)

        @self.tree.command(name="next", description="Move the duel to the next question")
        async def next_command(interaction: discord.Interaction):
            await self.handle_next(interaction)

        @self.tree.command(name="finish", description="End the current session now")
        async def finish_command(interaction: discord.Interaction):
            await self.handle_finish(interaction)

        @self.tree.command(name="status", description="Show the current session")
        async def status_command(interaction: discord.Interaction):
            await self.handle_status(interaction)

        @self.tree.command(name="language", description="Chọn ngôn ngữ / Choose language")
        async def language_command(interaction: discord.Interaction):
            await self.handle_language(interaction)

        @self.tree.command(name="set_questions", description="Set the number of questions per session")
        async def set_questions_command(interaction: discord.Interaction, number: int):
            await self.handle_set_questions(interaction, number)

        @self.tree.command(name="set_operation", description="Set the default operation")
        @app_commands.choices(operation=operation_choices)
        async def set_operation_command(interaction: discord.Interaction, operation: app_commands.Choice[str]):
            await self.handle_set_operation(interaction, operation.value)

        logger.info("Slash commands registered successfully")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def close(self):
        for controller in self._controllers.values():
            controller.shutdown()
        if self.sound_player:
            self.sound_player.stop_all()
        await super().close()

    # -- sessions -----------------------------------------------------------

    def labels(self) -> Dict[str, str]:
        return LABELS[self.preference_store.effective_language()]

    def get_controller(self, channel_id: int) -> QuizController:
        """Get the channel's controller, creating it on first use."""
        controller = self._controllers.get(channel_id)
        if controller is None:
            controller = QuizController(
                session_id=str(channel_id),
                settings=self.config_manager.get_quiz_settings(),
                language_provider=self.preference_store.effective_language
            )
            controller.add_feedback_listener(self.sound_player.play_feedback)
            controller.subscribe(lambda snapshot: self._on_snapshot(channel_id, snapshot))
            self._controllers[channel_id] = controller
            logger.info(f"Created quiz controller for channel {channel_id}")
        return controller

    def _on_snapshot(self, channel_id: int, snapshot: SessionSnapshot) -> None:
        """Refresh the board for timer ticks; actions re-render from their handlers."""
        previous = self._last_rendered.get(channel_id)
        message = self._board_messages.get(channel_id)
        if previous is None or message is None:
            return
        if dataclasses.replace(previous, elapsed_seconds=snapshot.elapsed_seconds) != snapshot:
            return
        if snapshot.elapsed_seconds % BOARD_REFRESH_SECONDS != 0:
            return
        self._schedule_refresh(channel_id, message, snapshot)

    def _schedule_refresh(self, channel_id: int, message: discord.Message, snapshot: SessionSnapshot) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._last_rendered[channel_id] = snapshot
        loop.create_task(self._refresh_board(message, snapshot))

    async def _refresh_board(self, message: discord.Message, snapshot: SessionSnapshot) -> None:
        try:
            await message.edit(embed=self.build_board_embed(snapshot))
        except discord.HTTPException as e:
            logger.warning(f"Failed to refresh quiz board: {e}")

    def _on_language_changed(self, language: Language) -> None:
        """Re-render every live board in the new language."""
        logger.info(f"Interface language changed to {language.value}")
        for channel_id, message in list(self._board_messages.items()):
            controller = self._controllers.get(channel_id)
            if controller is not None:
                self._schedule_refresh(channel_id, message, controller.snapshot())

    def _forget_board(self, channel_id: int) -> None:
        self._board_messages.pop(channel_id, None)
        self._last_rendered.pop(channel_id, None)
        self._answered.pop(channel_id, None)

    def build_board_embed(self, snapshot: SessionSnapshot) -> discord.Embed:
        """Render a session snapshot in the active language."""
        labels = LABELS[snapshot.language]
        mode_label = labels['solo'] if snapshot.mode == GameMode.SOLO else labels['duel']

        if snapshot.is_running and snapshot.question_text:
            color = COLOR_RUNNING
            title = labels['question'].format(current=snapshot.current_index + 1, total=snapshot.total_questions)
            description = f"# {snapshot.question_text}"
        elif snapshot.is_finished:
            color = COLOR_FINISHED
            title = labels['finished']
            description = None
        else:
            color = COLOR_IDLE
            title = labels['title']
            description = labels['idle']

        embed = discord.Embed(title=title, description=description, color=color)
        embed.set_author(name=f"{labels['title']} · {mode_label}")
        embed.add_field(name=labels['time'], value=format_elapsed(snapshot.elapsed_seconds), inline=True)

        if snapshot.mode == GameMode.SOLO:
            embed.add_field(
                name=labels['correct_count'],
                value=f"{snapshot.correct_solo}/{snapshot.total_questions}",
                inline=True
            )
        else:
            embed.add_field(name=labels['player1'], value=f"{labels['correct_count']}: {snapshot.p1_correct}", inline=True)
            embed.add_field(name=labels['player2'], value=f"{labels['correct_count']}: {snapshot.p2_correct}", inline=True)

        if snapshot.winner is not None:
            embed.add_field(
                name=labels['winner'],
                value=f"**{labels[WINNER_LABEL_KEYS[snapshot.winner]]}**",
                inline=False
            )
        return embed

    async def _send_board(self, interaction: discord.Interaction, controller: QuizController, content: str = None):
        """Reply with the current board and remember it for timer refreshes."""
        snapshot = controller.snapshot()
        await self._respond(interaction, content=content, embed=self.build_board_embed(snapshot))
        if not snapshot.is_running:
            self._forget_board(interaction.channel_id)
            return
        self._last_rendered[interaction.channel_id] = snapshot
        try:
            self._board_messages[interaction.channel_id] = await interaction.original_response()
        except discord.HTTPException as e:
            logger.debug(f"Could not fetch board message: {e}")

    async def _respond(self, interaction: discord.Interaction, content: str = None, embed: discord.Embed = None,
                       ephemeral: bool = False, view: discord.ui.View = None):
        kwargs = {'ephemeral': ephemeral}
        if content is not None:
            kwargs['content'] = content
        if embed is not None:
            kwargs['embed'] = embed
        if view is not None:
            kwargs['view'] = view
        if interaction.response.is_done():
            await interaction.followup.send(**kwargs)
        else:
            await interaction.response.send_message(**kwargs)

    # -- command handlers ---------------------------------------------------

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        try:
            embed = discord.Embed(
                title="🧮 MMart Fun",
                description="Multiplication and division practice, solo or head to head.",
                color=0x0099ff
            )
            embed.add_field(
                name="🎮 Play",
                value=(
                    "`/solo [operation]` - Start a solo session\n"
                    "`/duel [operation]` - Start a two-player duel\n"
                    "`/answer <value> [player]` - Answer the current question\n"
                    "`/skip` - Skip a question (solo)\n"
                    "`/next` - Next question (duel)\n"
                    "`/finish` - End the session\n"
                    "`/status` - Show the board"
                ),
                inline=False
            )
            embed.add_field(
                name="⚙️ Settings",
                value=(
                    "`/set_questions <number>` - Questions per session\n"
                    "`/set_operation <operation>` - Default operation\n"
                    "`/language` - Chọn ngôn ngữ / Choose language"
                ),
                inline=False
            )
            embed.add_field(
                name="Current Settings",
                value=self.config_manager.get_settings_summary(),
                inline=False
            )
            await self._respond(interaction, embed=embed)
        except discord.HTTPException as e:
            logger.error(f"Failed to send help: {e}")

    async def handle_start(self, interaction: discord.Interaction, mode: GameMode, operation: Optional[str] = None):
        """Handle /solo and /duel commands"""
        try:
            operation_filter = Operation(operation) if operation else self.config_manager.get_operation()
        except ValueError:
            await self.send_error_response(interaction, f"Unknown operation: {operation}")
            return

        try:
            controller = self.get_controller(interaction.channel_id)
            controller.start(
                mode=mode,
                operation_filter=operation_filter,
                question_count=self.config_manager.get_question_count()
            )
            self._answered[interaction.channel_id] = False
            logger.info(f"{mode.value} session started in channel {interaction.channel_id} by {interaction.user}")
            await self._send_board(interaction, controller)

            if self.preference_store.is_first_launch():
                labels = self.labels()
                await interaction.followup.send(
                    content=f"**{labels['choose_language']}**\n{labels['language_hint']}",
                    view=LanguageSelectView(self),
                    ephemeral=True
                )
        except discord.HTTPException as e:
            logger.error(f"Discord error in start command: {e}")
        except Exception as e:
            logger.error(f"Error in start command: {e}", exc_info=True)
            await self.send_error_response(interaction, "Failed to start the session")

    async def handle_answer(self, interaction: discord.Interaction, value: str, player: int = 1):
        """Handle /answer command"""
        labels = self.labels()
        answer = parse_answer(value)
        if answer is None:
            await self._respond(interaction, content=labels['not_a_number'], ephemeral=True)
            return

        controller = self.get_controller(interaction.channel_id)
        try:
            result = controller.submit_answer(answer, player)
            if result is None:
                await self._respond(interaction, content=labels['ignored'], ephemeral=True)
                return

            self._answered[interaction.channel_id] = True
            feedback = labels['correct'] if result else labels['incorrect']
            if controller.mode == GameMode.DUEL:
                player_label = labels['player1'] if player == 1 else labels['player2']
                feedback = f"{player_label}: {feedback}"
            await self._send_board(interaction, controller, content=feedback)
        except discord.HTTPException as e:
            logger.error(f"Discord error in answer command: {e}")

    async def handle_skip(self, interaction: discord.Interaction):
        """Handle /skip command"""
        controller = self.get_controller(interaction.channel_id)
        try:
            if not controller.skip():
                await self._respond(interaction, content=self.labels()['ignored'], ephemeral=True)
                return
            await self._send_board(interaction, controller)
        except discord.HTTPException as e:
            logger.error(f"Discord error in skip command: {e}")

    async def handle_next(self, interaction: discord.Interaction):
        """Handle /next command, once at least one player answered the question"""
        controller = self.get_controller(interaction.channel_id)
        try:
            if controller.is_running and controller.mode == GameMode.DUEL \
                    and not self._answered.get(interaction.channel_id, False):
                await self._respond(interaction, content=self.labels()['answer_first'], ephemeral=True)
                return
            if not controller.advance_turn():
                await self._respond(interaction, content=self.labels()['ignored'], ephemeral=True)
                return
            self._answered[interaction.channel_id] = False
            await self._send_board(interaction, controller)
        except discord.HTTPException as e:
            logger.error(f"Discord error in next command: {e}")

    async def handle_finish(self, interaction: discord.Interaction):
        """Handle /finish command"""
        controller = self.get_controller(interaction.channel_id)
        try:
            if not controller.finish():
                await self._respond(interaction, content=self.labels()['ignored'], ephemeral=True)
                return
            await self._send_board(interaction, controller)
        except discord.HTTPException as e:
            logger.error(f"Discord error in finish command: {e}")

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        try:
            await self._send_board(interaction, self.get_controller(interaction.channel_id))
        except discord.HTTPException as e:
            logger.error(f"Discord error in status command: {e}")

    async def handle_language(self, interaction: discord.Interaction):
        """Handle /language command"""
        labels = self.labels()
        try:
            await self._respond(
                interaction,
                content=f"**{labels['choose_language']}**\n{labels['language_hint']}",
                view=LanguageSelectView(self),
                ephemeral=True
            )
        except discord.HTTPException as e:
            logger.error(f"Discord error in language command: {e}")

    async def handle_language_choice(self, interaction: discord.Interaction, language: Language):
        """Persist the language picked in the language prompt"""
        saved = self.preference_store.set_language(language)
        if not saved:
            logger.warning("Language preference could not be saved, it applies until restart")
        try:
            await interaction.response.edit_message(content=LABELS[language]['language_set'], view=None)
        except discord.HTTPException as e:
            logger.error(f"Discord error confirming language choice: {e}")

    async def handle_set_questions(self, interaction: discord.Interaction, number: int):
        """Handle /set_questions command"""
        result = self.config_manager.set_question_count(number)
        try:
            await self._respond(interaction, content=result['user_message'], ephemeral=not result['success'])
        except discord.HTTPException as e:
            logger.error(f"Discord error in set_questions command: {e}")

    async def handle_set_operation(self, interaction: discord.Interaction, operation: str):
        """Handle /set_operation command"""
        result = self.config_manager.set_operation(operation)
        try:
            await self._respond(interaction, content=result['user_message'], ephemeral=not result['success'])
        except discord.HTTPException as e:
            logger.error(f"Discord error in set_operation command: {e}")

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send a standardized error response"""
        try:
            embed = discord.Embed(title=title, description=message, color=COLOR_ERROR)
            await self._respond(interaction, embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting MMart Fun bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
