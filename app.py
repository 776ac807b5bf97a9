import streamlit as st

from dwin_gauge import (
    ExportCancelled,
    FrameEncodeError,
    PresetError,
    default_preset,
    dump_preset,
    effective_export_states,
    export_archive,
    frame_name,
    load_preset,
    merge_preset,
    render_state_image,
    setup_logging,
)
from dwin_gauge.editor import patch_from_state, state_from_preset, stop_keys
from dwin_gauge.export import safe_prefix
from dwin_gauge.states import MAX_CONTINUOUS_STATES, MIN_CONTINUOUS_STATES

log = setup_logging()

st.set_page_config(page_title="DWIN Gauge Creator", layout="wide")


def bounded(key, low, high):
    """Session value clamped into a widget's range, with the range's type."""
    return type(low)(max(low, min(high, st.session_state[key])))


def load_into_session(preset):
    st.session_state['loaded_preset'] = preset
    for key, val in state_from_preset(preset).items():
        st.session_state[key] = val
    # Widgets keep their own state under "<key>_w"; drop it so they pick up the new values.
    for key in [k for k in st.session_state.keys() if str(k).endswith("_w")]:
        del st.session_state[key]


if 'loaded_preset' not in st.session_state:
    load_into_session(default_preset())

st.markdown(
    "<h1 style='text-align:center;'>DWIN Gauge Frame Generator</h1>",
    unsafe_allow_html=True
)

# Sidebar for gauge parameters
with st.sidebar:
    st.header("Gauge Parameters")

    st.session_state['preset_name'] = st.text_input(
        "Preset Name", st.session_state['preset_name'], key="preset_name_w"
    )
    st.session_state['name_prefix'] = st.text_input(
        "File Name Prefix", st.session_state['name_prefix'], key="name_prefix_w"
    )
    st.session_state['mode'] = st.radio(
        "Gauge Type", ("arc", "bar"),
        index=["arc", "bar"].index(st.session_state['mode']),
        format_func=lambda m: "Arc (270°)" if m == "arc" else "Bar",
        key="mode_w"
    )

    st.subheader("Canvas")
    st.session_state['canvas_width'] = st.number_input(
        "Width (px)", 16, 2048, value=bounded('canvas_width', 16, 2048), step=8, key="canvas_width_w"
    )
    st.session_state['canvas_height'] = st.number_input(
        "Height (px)", 16, 2048, value=bounded('canvas_height', 16, 2048), step=8, key="canvas_height_w"
    )
    st.session_state['transparent_background'] = st.checkbox(
        "Transparent Background", value=st.session_state['transparent_background'], key="transparent_background_w"
    )
    if not st.session_state['transparent_background']:
        st.session_state['canvas_background'] = st.color_picker(
            "Background Color", st.session_state['canvas_background'], key="canvas_background_w"
        )
    st.session_state['fit_content'] = st.checkbox(
        "Shrink to Fit Canvas", value=st.session_state['fit_content'], key="fit_content_w",
        help="Scale the gauge down when it plus its glow would not fit the canvas."
    )

    if st.session_state['mode'] == "arc":
        st.subheader("Arc")
        directions = ["top", "right", "bottom", "left"]
        st.session_state['opening_direction'] = st.selectbox(
            "Opening", directions,
            index=directions.index(st.session_state['opening_direction']), key="opening_direction_w"
        )
        st.session_state['arc_radius'] = st.slider(
            "Radius (px)", 10.0, 1000.0, value=bounded('arc_radius', 10.0, 1000.0), step=1.0, key="arc_radius_w"
        )
        st.session_state['arc_thickness'] = st.slider(
            "Thickness (px)", 1.0, 200.0, value=bounded('arc_thickness', 1.0, 200.0), step=1.0,
            key="arc_thickness_w"
        )
        st.session_state['round_caps'] = st.checkbox(
            "Round Caps", value=st.session_state['round_caps'], key="round_caps_w"
        )
    else:
        st.subheader("Bar")
        st.session_state['bar_orientation'] = st.radio(
            "Orientation", ("horizontal", "vertical"),
            index=["horizontal", "vertical"].index(st.session_state['bar_orientation']), key="bar_orientation_w"
        )
        directions = ["ltr", "rtl"] if st.session_state['bar_orientation'] == "horizontal" else ["ttb", "btt"]
        current = st.session_state['bar_direction']
        st.session_state['bar_direction'] = st.radio(
            "Fill Direction", directions,
            index=directions.index(current) if current in directions else 0, key="bar_direction_w"
        )
        st.session_state['bar_length'] = st.slider(
            "Length (px)", 10.0, 2000.0, value=bounded('bar_length', 10.0, 2000.0), step=1.0, key="bar_length_w"
        )
        st.session_state['bar_thickness'] = st.slider(
            "Thickness (px)", 1.0, 200.0, value=bounded('bar_thickness', 1.0, 200.0), step=1.0,
            key="bar_thickness_w"
        )
        st.session_state['square_ends'] = st.checkbox(
            "Square Ends", value=st.session_state['square_ends'], key="square_ends_w"
        )
        if not st.session_state['square_ends']:
            st.session_state['corner_radius'] = st.slider(
                "Corner Radius (px)", 0.0, 100.0, value=bounded('corner_radius', 0.0, 100.0), step=1.0,
                key="corner_radius_w"
            )

    st.subheader("Base Track")
    st.session_state['base_enabled'] = st.checkbox(
        "Show Base Track", value=st.session_state['base_enabled'], key="base_enabled_w"
    )
    if st.session_state['base_enabled']:
        st.session_state['base_color'] = st.color_picker(
            "Base Color", st.session_state['base_color'], key="base_color_w"
        )
        st.session_state['base_opacity'] = st.slider(
            "Base Opacity", 0.0, 1.0, value=bounded('base_opacity', 0.0, 1.0), step=0.05, key="base_opacity_w"
        )
        st.session_state['base_same_geometry'] = st.checkbox(
            "Same Thickness as Main", value=st.session_state['base_same_geometry'], key="base_same_geometry_w"
        )
        if not st.session_state['base_same_geometry']:
            st.session_state['base_thickness_scale'] = st.slider(
                "Base Thickness (x main)", 0.1, 3.0, value=bounded('base_thickness_scale', 0.1, 3.0),
                step=0.05, key="base_thickness_scale_w"
            )

    st.subheader("Main Stroke")
    fill_modes = ["solid", "gradient2", "gradient3"]
    st.session_state['fill_mode'] = st.radio(
        "Fill", fill_modes,
        index=fill_modes.index(st.session_state['fill_mode']),
        format_func={"solid": "Solid", "gradient2": "2-stop gradient", "gradient3": "3-stop gradient"}.get,
        key="fill_mode_w"
    )
    if st.session_state['fill_mode'] == "solid":
        st.session_state['color_solid'] = st.color_picker(
            "Color", st.session_state['color_solid'], key="color_solid_w"
        )
    else:
        keys = stop_keys(st.session_state['fill_mode'])
        cols = st.columns(len(keys))
        for col, key in zip(cols, keys):
            with col:
                st.session_state[key] = st.color_picker(
                    {"stop_0": "Start", "stop_1": "Middle", "stop_2": "End"}[key],
                    st.session_state[key], key=f"{key}_w"
                )

    st.session_state['segmented'] = st.checkbox(
        "Segmented", value=st.session_state['segmented'], key="segmented_w"
    )
    if st.session_state['segmented']:
        st.session_state['segments'] = st.number_input(
            "Number of Segments", 1, 100, value=bounded('segments', 1, 100), step=1, key="segments_w"
        )
        st.session_state['segment_gap'] = st.slider(
            "Gap Between Segments (px)", 0.0, 40.0, value=bounded('segment_gap', 0.0, 40.0), step=0.5,
            key="segment_gap_w"
        )
    else:
        st.session_state['states'] = st.slider(
            "Number of States", MIN_CONTINUOUS_STATES, MAX_CONTINUOUS_STATES,
            value=max(MIN_CONTINUOUS_STATES, min(MAX_CONTINUOUS_STATES, int(st.session_state['states']))),
            key="states_w"
        )

    st.session_state['border_enabled'] = st.checkbox(
        "Border", value=st.session_state['border_enabled'], key="border_enabled_w"
    )
    if st.session_state['border_enabled']:
        st.session_state['border_color'] = st.color_picker(
            "Border Color", st.session_state['border_color'], key="border_color_w"
        )
        st.session_state['border_thickness'] = st.slider(
            "Border Thickness (x main)", 1.0, 3.0, value=bounded('border_thickness', 1.0, 3.0), step=0.05,
            key="border_thickness_w"
        )

    st.subheader("Glow")
    st.session_state['glow_enabled'] = st.checkbox(
        "Enable Glow", value=st.session_state['glow_enabled'], key="glow_enabled_w"
    )
    if st.session_state['glow_enabled']:
        glow_modes = ["soft", "ring", "legacy"]
        st.session_state['glow_mode'] = st.radio(
            "Glow Style", glow_modes,
            index=glow_modes.index(st.session_state['glow_mode']), key="glow_mode_w"
        )
        st.session_state['glow_strength'] = st.slider(
            "Strength", 0.0, 100.0, value=bounded('glow_strength', 0.0, 100.0), step=1.0, key="glow_strength_w"
        )
        if st.session_state['glow_mode'] == "legacy":
            st.session_state['legacy_outer_thickness'] = st.slider(
                "Outer Thickness", 0.0, 40.0, value=bounded('legacy_outer_thickness', 0.0, 40.0), step=0.5,
                key="legacy_outer_thickness_w"
            )
        else:
            st.session_state['glow_thickness'] = st.slider(
                "Thickness", 0.0, 20.0, value=bounded('glow_thickness', 0.0, 20.0), step=0.25,
                key="glow_thickness_w"
            )
        if st.session_state['glow_mode'] == "soft":
            st.session_state['halo_outer'] = st.checkbox(
                "Outer Halo", value=st.session_state['halo_outer'], key="halo_outer_w"
            )
            st.session_state['halo_inner'] = st.checkbox(
                "Inner Halo", value=st.session_state['halo_inner'], key="halo_inner_w"
            )
        elif st.session_state['glow_mode'] == "ring":
            st.session_state['ring_passes'] = st.slider(
                "Rings", 0, 12, value=bounded('ring_passes', 0, 12), key="ring_passes_w"
            )
        if st.session_state['segmented']:
            st.session_state['glow_per_segment'] = st.checkbox(
                "Glow Per Segment", value=st.session_state['glow_per_segment'], key="glow_per_segment_w",
                help="Ignored with round caps on arcs."
            )

try:
    preset = merge_preset(
        st.session_state['loaded_preset'],
        patch_from_state(st.session_state, st.session_state['loaded_preset']),
    )
except PresetError as exc:
    log.warning("rejected editor update: %s", exc)
    st.error(f"Invalid settings: {exc}")
    preset = st.session_state['loaded_preset']

total_states = effective_export_states(preset)
prefix = safe_prefix(preset.name_prefix)

tab_generator, tab_preset = st.tabs(["Gauge Generator", "Preset"])

with tab_generator:
    st.subheader("Live Preview")
    st.session_state['preview_state'] = min(st.session_state['preview_state'], total_states - 1)
    if total_states > 1:
        st.session_state['preview_state'] = st.slider(
            "State", 0, total_states - 1, value=st.session_state['preview_state'], key="preview_state_w"
        )

    try:
        frame = render_state_image(preset, st.session_state['preview_state'], total_states)
    except FrameEncodeError as exc:
        st.error(f"Could not render state {exc.index}: {exc.reason}")
        frame = None

    if frame is not None:
        st.image(frame, caption=f"State {st.session_state['preview_state']} of {total_states}")
        st.download_button(
            "Download Current State",
            frame,
            file_name=frame_name(prefix, st.session_state['preview_state'], total_states),
            mime="image/png",
            key="download_current_state"
        )

    st.write(f"### Export All States ({total_states} PNG files)")
    if st.button("Generate All States", key="generate_all_button"):
        bar = st.progress(0.0, text="Rendering states...")

        def on_progress(done, total):
            bar.progress(done / total, text=f"Rendering states ({done}/{total})...")

        try:
            with st.spinner("Generating gauge images... This may take a moment."):
                st.session_state['archive'] = export_archive(preset, on_progress=on_progress)
            st.success("All gauge images generated and ready for download!")
        except FrameEncodeError as exc:
            st.session_state.pop('archive', None)
            st.error(f"Export aborted: state {exc.index} could not be encoded ({exc.reason}).")
        except ExportCancelled as exc:
            st.session_state.pop('archive', None)
            st.warning(str(exc))

    if st.session_state.get('archive'):
        st.download_button(
            label="Download ZIP",
            data=st.session_state['archive'],
            file_name=f"{prefix}.zip",
            mime="application/zip",
            key="download_archive_button"
        )

with tab_preset:
    st.subheader("Save Preset")
    st.download_button(
        "Download Preset JSON",
        dump_preset(preset, camel_case=True),
        file_name=f"{prefix}.json",
        mime="application/json",
        key="download_preset_button"
    )

    st.subheader("Load Preset")
    upload = st.file_uploader("Preset JSON", type="json", key="preset_upload")
    if upload is not None and st.button("Apply Preset", key="apply_preset_button"):
        try:
            loaded = load_preset(upload.getvalue().decode("utf-8"))
        except (PresetError, UnicodeDecodeError) as exc:
            st.error(f"Could not load preset: {exc}")
        else:
            load_into_session(loaded)
            st.session_state.pop('archive', None)
            st.rerun()

    with st.expander("Current preset"):
        st.code(dump_preset(preset), language="json")
