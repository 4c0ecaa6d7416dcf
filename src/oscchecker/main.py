# OSCChecker - Application
# Copyright (C) 2025 maigre - Hemisphere Project
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import argparse
import sys

import dearpygui.dearpygui as dpg

from .config import build_send_targets, get_config_path, load_config, receiver_settings
from .osc.arguments import ArgumentKind
from .osc.errors import ConfigError, OSCCheckerError
from .osc.message_log import MessageLog
from .osc.sender import EMPTY_HISTORY_TEXT, Sender, SendHistory
from .osc.server import Listener, ListenerState


STATUS_COLORS = {
    ListenerState.STOPPED: (150, 150, 150),
    ListenerState.RECEIVING: (0, 255, 0),
}


class OscChecker:
    def __init__(self, config):
        self.config = config
        self.targets = build_send_targets(config)
        self.default_port, max_log_entries = receiver_settings(config)

        self.sender = Sender()
        self.send_history = SendHistory()
        self.message_log = MessageLog(max_log_entries, on_change=self.update_message_count)
        self.listener = Listener(self.message_log)

        dpg.create_context()
        # Window positions come from config.json, no imgui ini file
        dpg.configure_app(init_file="")

        self.setup_sender_window()
        self.setup_receiver_window()

    def setup_sender_window(self):
        """Setup the sender window: one section per configured target"""
        window = self.config["sender"]["window"]
        with dpg.window(label=window["title"], tag="sender_window",
                        width=window["width"], height=window["height"],
                        pos=(0, 0), no_close=True):
            dpg.add_text("OSC Sender", color=(150, 200, 255))
            dpg.add_separator()

            with dpg.child_window(tag="targets_window", width=-1, height=-200, border=False):
                for index, target in enumerate(self.targets):
                    self.add_target_section(index, target)

            dpg.add_separator()
            dpg.add_text("Send History:", color=(150, 200, 255))
            with dpg.child_window(tag="history_window", width=-1, height=-1, border=True):
                dpg.add_text(EMPTY_HISTORY_TEXT, tag="history_text")

    def add_target_section(self, index, target):
        with dpg.collapsing_header(label=target.name, default_open=True, parent="targets_window"):
            with dpg.group(horizontal=True):
                dpg.add_button(label="Send", width=80, height=30,
                               callback=self.on_send, user_data=index)
                dpg.add_text("IP:")
                dpg.add_input_text(default_value=target.host, hint="Host IP", width=120,
                                   callback=self.on_target_field_changed,
                                   user_data=(index, "host"))
                dpg.add_text("Port:")
                dpg.add_input_text(default_value=str(target.port), hint="Port", width=80,
                                   callback=self.on_target_field_changed,
                                   user_data=(index, "port"))
                dpg.add_text("OSC Addr:")
                dpg.add_input_text(default_value=target.address, hint="OSC Address", width=200,
                                   callback=self.on_target_field_changed,
                                   user_data=(index, "address"))

            dpg.add_button(label="+", width=30, callback=self.on_add_argument, user_data=index)
            dpg.add_group(tag=f"arguments_{index}")
            self.update_arguments_display(index)
        dpg.add_spacer(height=5, parent="targets_window")

    def update_arguments_display(self, index):
        """Rebuild the argument rows for one target"""
        container = f"arguments_{index}"
        dpg.delete_item(container, children_only=True)
        target = self.targets[index]

        for position, argument in enumerate(target.arguments):
            label = f"Arg{position + 1}:"
            if argument.description:
                label += f" ({argument.description})"
            with dpg.group(horizontal=True, parent=container):
                dpg.add_text(label)
                dpg.add_combo(ArgumentKind.names(), default_value=argument.kind.value, width=90,
                              callback=self.on_argument_type_changed, user_data=argument)
                dpg.add_input_text(default_value=argument.raw_text, width=200,
                                   callback=self.on_argument_value_changed, user_data=argument)
                dpg.add_button(label="x", callback=self.on_remove_argument,
                               user_data=(index, position))

    def setup_receiver_window(self):
        """Setup the receiver window: listener controls, filter and log"""
        window = self.config["receiver"]["window"]
        sender_width = self.config["sender"]["window"]["width"]
        with dpg.window(label=window["title"], tag="receiver_window",
                        width=window["width"], height=window["height"],
                        pos=(sender_width, 0), no_close=True):
            dpg.add_text("Connection Settings", color=(150, 200, 255))
            with dpg.group(horizontal=True):
                dpg.add_text("Port:")
                dpg.add_input_text(tag="receiver_port_input", default_value=str(self.default_port),
                                   hint="Port Number", width=80)

            dpg.add_separator()
            with dpg.group(horizontal=True):
                dpg.add_button(label="Start", tag="start_stop_btn", width=150, height=40,
                               callback=self.on_start_stop)
                dpg.add_text(ListenerState.STOPPED.value, tag="status_text",
                             color=STATUS_COLORS[ListenerState.STOPPED])

            dpg.add_separator()
            dpg.add_text("Address Filter:")
            dpg.add_input_text(tag="filter_input", width=-1,
                               hint="Address Filter (e.g. /test*, /osc/*, empty=all)",
                               callback=self.refresh_log)
            dpg.add_text("Received: 0", tag="message_count_text")

            dpg.add_separator()
            with dpg.group(horizontal=True):
                dpg.add_text("Message Log", color=(150, 200, 255))
                dpg.add_button(label="Clear", callback=self.on_clear)
            with dpg.child_window(tag="log_window", width=-1, height=-1, border=True):
                dpg.add_text(self.message_log.render(), tag="log_text")

    # Sender callbacks

    def on_target_field_changed(self, sender, app_data, user_data):
        index, field = user_data
        setattr(self.targets[index], field, app_data)

    def on_argument_type_changed(self, sender, app_data, user_data):
        user_data.kind = ArgumentKind.parse(app_data)

    def on_argument_value_changed(self, sender, app_data, user_data):
        user_data.raw_text = app_data

    def on_add_argument(self, sender, app_data, user_data):
        self.targets[user_data].add_argument()
        self.update_arguments_display(user_data)

    def on_remove_argument(self, sender, app_data, user_data):
        index, position = user_data
        self.targets[index].remove_argument(position)
        self.update_arguments_display(index)

    def on_send(self, sender, app_data, user_data):
        target = self.targets[user_data]
        try:
            result = self.sender.send(target)
        except OSCCheckerError as e:
            print(f"Send error [{target.name}]: {e}")
            return
        self.send_history.add(result)
        dpg.set_value("history_text", self.send_history.render())

    # Receiver callbacks

    def on_start_stop(self, sender=None, app_data=None, user_data=None):
        if self.listener.is_receiving:
            state = self.listener.stop()
        else:
            try:
                state = self.listener.start(dpg.get_value("receiver_port_input"),
                                            on_message=self.on_message)
            except OSCCheckerError as e:
                print(f"Receive error: {e}")
                self.refresh_log()
                return
        self.update_status(state)
        self.refresh_log()

    def on_message(self, address, values):
        self.refresh_log()

    def on_clear(self, sender=None, app_data=None, user_data=None):
        self.message_log.clear()
        self.refresh_log()

    def update_status(self, state):
        label = "Stop" if state is ListenerState.RECEIVING else "Start"
        dpg.configure_item("start_stop_btn", label=label)
        dpg.set_value("status_text", state.value)
        dpg.configure_item("status_text", color=STATUS_COLORS[state])

    def update_message_count(self, count):
        if dpg.does_item_exist("message_count_text"):
            dpg.set_value("message_count_text", f"Received: {count}")

    def refresh_log(self, sender=None, app_data=None, user_data=None):
        pattern = dpg.get_value("filter_input") or ""
        dpg.set_value("log_text", self.message_log.render(pattern))

    def on_quit(self):
        if self.listener.is_receiving:
            self.listener.stop()
        self.sender.close()

    def run(self):
        """Run the DearPyGUI application"""
        app = self.config["app"]
        sender_window = self.config["sender"]["window"]
        receiver_window = self.config["receiver"]["window"]
        dpg.create_viewport(title=f"{app['name']} {app['version']}",
                            width=sender_window["width"] + receiver_window["width"],
                            height=max(sender_window["height"], receiver_window["height"]))
        dpg.setup_dearpygui()
        dpg.show_viewport()

        # Main loop, the only consumer of received messages
        while dpg.is_dearpygui_running():
            self.listener.poll()
            dpg.render_dearpygui_frame()

        self.on_quit()
        dpg.destroy_context()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send and receive OSC messages")
    parser.add_argument("--config", default=None,
                        help=f"Path to config.json (default: {get_config_path()})")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        app = OscChecker(config)
    except ConfigError as e:
        print(f"Error loading config: {e}")
        return 1

    app.run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
