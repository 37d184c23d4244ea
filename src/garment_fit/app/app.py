import logging
import os
import sys

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

# Streamlit runs this file as a script; make the sibling `garment_fit` package importable
current_file = os.path.abspath(__file__)
src_root = os.path.abspath(os.path.join(os.path.dirname(current_file), '..', '..'))
if src_root not in sys.path:
	sys.path.insert(0, src_root)

from garment_fit.app.session import TryOnSession
from garment_fit.config import SIZE_ADJUSTMENT_RANGE, load_config
from garment_fit.fit_model.calibration import CalibrationStatus
from garment_fit.garments.categories import LIST_MODEL_TYPES
from garment_fit.preprocessing.pose_presets import LIST_PRESETS, lean_sequence, pose_preset_landmarks
from garment_fit.preprocessing.recording import load_recording

logger = logging.getLogger(__name__)

FRAME_INTERVAL = 1.0 / 30.0  # replay clock, seconds per frame


class ReplayClock:
	"""Session clock advanced by the replay loop instead of wall time."""

	def __init__(self):
		self.now = 0.0

	def __call__(self):
		return self.now


def replay(frames, model_type, size_adjustment, smoothing_factor, calibrate_first=False):
	"""Run recorded frames through a fresh session. Returns (per-frame DataFrame, session)."""
	config = load_config(smoothing_factor=smoothing_factor, size_adjustment=size_adjustment, default_category=model_type)
	clock = ReplayClock()
	session = TryOnSession(config, clock=clock)
	session.start()

	if calibrate_first:
		session.start_calibration()

	rows = []
	for i, keypoints in enumerate(frames):
		clock.now = i * FRAME_INTERVAL
		result = session.on_keypoints(keypoints)
		if session.poller.active:
			session.calibration_tick()
		if result is None:
			rows.append({'frame': i, 'skipped': True})
			continue
		rows.append({
			'frame': i,
			'skipped': False,
			'target_scale_x': result.target.scale[0],
			'applied_scale_x': result.applied.scale[0],
			'target_scale_y': result.target.scale[1],
			'applied_scale_y': result.applied.scale[1],
			'shoulder_width': result.measurements.shoulder_width,
			'torso_length': result.measurements.torso_length,
			'fit_overall': result.fit_quality.overall,
			'fit_label': result.label or '',
		})
	# let the poller see the end of the recording so a pending calibration resolves
	if session.poller.active:
		session.calibration_tick(clock.now + config.calibration.timeout)
	return pd.DataFrame(rows), session


def _scale_chart(df):
	fig = go.Figure()
	fig.add_trace(go.Scatter(x=df['frame'], y=df['target_scale_x'], mode='lines+markers', name='target scale x'))
	fig.add_trace(go.Scatter(x=df['frame'], y=df['applied_scale_x'], mode='lines+markers', name='applied scale x'))
	fig.add_trace(go.Scatter(x=df['frame'], y=df['fit_overall'], mode='lines', name='overall fit', yaxis='y2'))
	fig.update_layout(
		xaxis_title='frame',
		yaxis_title='scale',
		yaxis2=dict(title='fit', overlaying='y', side='right', range=[0, 1.05]),
		height=420,
	)
	return fig


def main():
	logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
	st.title("Pose-Driven Garment Fitting")
	st.write("Replay body landmarks through the try-on pipeline and inspect the garment transform and fit.")

	st.sidebar.subheader('Garment')
	model_type = st.sidebar.selectbox('Model type', options=LIST_MODEL_TYPES, index=0)
	size_adjustment = st.sidebar.slider('Size adjustment', min_value=SIZE_ADJUSTMENT_RANGE[0],
										max_value=SIZE_ADJUSTMENT_RANGE[1], value=1.0, step=0.05)
	smoothing_factor = st.sidebar.slider('Smoothing factor', min_value=0.0, max_value=1.0, value=0.8, step=0.05)
	calibrate_first = st.sidebar.checkbox('Calibrate from the recording (T-pose)', value=False)

	source = st.radio('Landmark source', options=['Synthetic lean', 'Pose preset', 'Recording (CSV)', 'Photo'], horizontal=True)

	frames = []
	if source == 'Synthetic lean':
		n = st.slider('Frames', min_value=5, max_value=120, value=30)
		step = st.slider('Shoulder widening per frame (m)', min_value=0.0, max_value=0.02, value=0.005, step=0.001)
		frames = lean_sequence(frames=n, step=step)
		if calibrate_first:
			frames = [pose_preset_landmarks('T-pose')] * 20 + frames
	elif source == 'Pose preset':
		preset = st.selectbox('Preset', options=LIST_PRESETS, index=0)
		frames = [pose_preset_landmarks(preset)] * 30
	elif source == 'Recording (CSV)':
		uploaded = st.file_uploader('Landmark recording (frame, index, x, y, z, visibility)', type=['csv'])
		if uploaded is not None:
			try:
				frames = load_recording(uploaded)
			except ValueError as e:
				st.error(str(e))
	else:
		photo = st.file_uploader('Upload a full-body photo', type=['jpg', 'jpeg', 'png'])
		if photo is not None:
			from PIL import Image
			from garment_fit.preprocessing.preprocess import detect_keypoints
			try:
				keypoints = detect_keypoints(Image.open(photo), load_config().pose)
			except ImportError as e:
				st.error(str(e))
				keypoints = []
			if not keypoints:
				st.warning('No body detected. Make sure shoulders, hips and ankles are in frame.')
			else:
				frames = [keypoints] * 30

	if not frames:
		st.info('No landmark frames yet.')
		return

	df, session = replay(frames, model_type, size_adjustment, smoothing_factor, calibrate_first)
	fitted = df[~df['skipped']]
	st.caption(f"{len(frames)} frames, {int(df['skipped'].sum())} skipped")

	if calibrate_first:
		status = session.poller.status
		if status == CalibrationStatus.CALIBRATED:
			st.success('Calibrated')
		elif status == CalibrationStatus.TIMED_OUT:
			st.warning('Calibration timed out')

	if fitted.empty:
		st.warning('Every frame was skipped (fewer than 33 landmarks).')
		return

	last = session.last_result
	cols = st.columns(3)
	cols[0].metric('Overall fit', f"{last.fit_quality.overall:.2f}")
	cols[1].metric('Shoulder width (m)', f"{last.measurements.shoulder_width:.3f}")
	cols[2].metric('Torso length (m)', f"{last.measurements.torso_length:.3f}")
	if last.label:
		st.success(last.label)

	st.plotly_chart(_scale_chart(fitted))

	with st.expander('Applied transform (last frame)'):
		st.json(last.applied.as_dict())
	with st.expander('Fit quality by region'):
		st.json(last.fit_quality.as_dict())
	with st.expander('Base measurements'):
		st.json(session.base_measurements.as_dict())
	with st.expander('Per-frame data'):
		st.dataframe(df)
	st.download_button('Download per-frame data (CSV)', data=df.to_csv(index=False).encode('utf-8'),
					   file_name='fit_replay.csv', mime='text/csv')


if __name__ == '__main__':
	main()
