##########################################################################################
#                                                                                        #
#    Unit tests for the simulation clock: the diurnal cycle, the conversion of wall      #
#    clock time into integration steps, downsampled storage of the time series and       #
#    its export as comma separated text                                                  #
#                                                                                        #
#    Copyright (C) 2018  David Topping : david.topping@manchester.ac.uk                  #
#                                      : davetopp80@gmail.com                            #
#    Personal website: davetoppingsci.com                                                #
#                                                                                        #
#    All Rights Reserved.                                                                #
#    This file is part of TropBox.                                                       #
#                                                                                        #
#    TropBox is free software: you can redistribute it and/or modify it under            #
#    the terms of the GNU General Public License as published by the Free Software       #
#    Foundation, either version 3 of the License, or (at your option) any later          #
#    version.                                                                            #
#                                                                                        #
#    TropBox is distributed in the hope that it will be useful, but WITHOUT              #
#    ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS       #
#    FOR A PARTICULAR PURPOSE.  See the GNU General Public License for more              #
#    details.                                                                            #
#                                                                                        #
#    You should have received a copy of the GNU General Public License along with        #
#    TropBox.  If not, see <http://www.gnu.org/licenses/>.                               #
#                                                                                        #
##########################################################################################

import numpy
import sys
import os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__),'..')))
import Trop_mechanism
import Trop_constants
import Environment
import Simulation_clock
from Simulation_clock import SimulationClock, TimeSeries
import copy
import tempfile
import numpy.testing as npt
import unittest

class TestZenith(unittest.TestCase):

    def test_zenith_values(self):
        self.assertEqual(Trop_constants.zenith(12*3600.0), 0.0)
        self.assertEqual(Trop_constants.zenith(0.0), 90.0)
        self.assertEqual(Trop_constants.zenith(6*3600.0), 45.0)
        self.assertEqual(Trop_constants.zenith(18*3600.0), 45.0)
        self.assertEqual(Trop_constants.zenith(3*3600.0), 67.5)
        # Periodic over one day
        self.assertEqual(Trop_constants.zenith(36*3600.0), 0.0)

    def test_zenith_bounds(self):
        for ttime in numpy.linspace(0.0, 3*86400.0, 301):
            sza=Trop_constants.zenith(ttime)
            self.assertGreaterEqual(sza, 0.0)
            self.assertLessEqual(sza, 90.0)

class TestClockState(unittest.TestCase):

    """
    Test the Stopped/Running state machine
    """

    def setUp(self):
        self.clock=SimulationClock()

    def test_initial_state(self):
        self.assertFalse(self.clock.is_running)
        self.assertEqual(self.clock.state, Simulation_clock.STOPPED)
        self.assertEqual(self.clock.time, 0.0)
        self.assertEqual(self.clock.sza, 0.0)
        self.assertEqual(dict(self.clock.concentrations), Trop_mechanism.PRESETS['background'])
        self.assertEqual(len(self.clock.time_series), 0)

    def test_tick_ignored_when_stopped(self):
        self.assertEqual(self.clock.tick(now=100.0), 0)
        self.assertEqual(self.clock.time, 0.0)
        self.assertEqual(len(self.clock.time_series), 0)

    def test_minimum_one_step(self):
        self.clock.start(now=0.0)
        self.assertEqual(self.clock.tick(now=0.5), 1)
        self.assertEqual(self.clock.time, 60.0)
        # A tick with no wall clock time elapsed still moves forward
        self.assertEqual(self.clock.tick(now=0.5), 1)
        self.assertEqual(self.clock.time, 120.0)

    def test_whole_steps_from_elapsed_time(self):
        self.clock.start(now=0.0)
        self.assertEqual(self.clock.tick(now=650.0), 10)
        self.assertEqual(self.clock.time, 600.0)

    def test_speed_scales_elapsed_time(self):
        self.clock.set_parameter('speed', 10.0)
        self.clock.start(now=0.0)
        self.assertEqual(self.clock.tick(now=60.0), 10)
        self.assertEqual(self.clock.time, 600.0)

    def test_start_while_running_keeps_reference(self):
        self.clock.start(now=0.0)
        self.clock.start(now=500.0)
        self.assertEqual(self.clock.tick(now=600.0), 10)

    def test_pause(self):
        self.clock.start(now=0.0)
        self.clock.tick(now=60.0)
        self.clock.pause()
        self.assertFalse(self.clock.is_running)
        self.assertEqual(self.clock.tick(now=6000.0), 0)
        self.assertEqual(self.clock.time, 60.0)

    def test_reset(self):
        self.clock.load_preset('polluted')
        self.clock.start(now=0.0)
        self.clock.tick(now=1200.0)
        self.clock.reset()
        self.assertEqual(self.clock.state, Simulation_clock.STOPPED)
        self.assertEqual(self.clock.time, 0.0)
        self.assertEqual(self.clock.sza, 0.0)
        self.assertEqual(len(self.clock.time_series), 0)
        self.assertEqual(dict(self.clock.concentrations), Trop_mechanism.PRESETS['background'])

    def test_load_preset_keeps_time(self):
        self.clock.start(now=0.0)
        self.clock.tick(now=600.0)
        self.clock.load_preset('clean')
        self.assertEqual(self.clock.time, 600.0)
        self.assertEqual(dict(self.clock.concentrations), Trop_mechanism.PRESETS['clean'])
        self.assertEqual(len(self.clock.time_series), 1)

    def test_set_nox_level(self):
        self.clock.set_nox_level(4.0)
        self.assertEqual(self.clock.concentrations['NO'], 2.0)
        self.assertEqual(self.clock.concentrations['NO2'], 2.0)
        self.assertEqual(self.clock.env['nox_level'], 4.0)
        with self.assertRaises(ValueError):
            self.clock.set_nox_level(20.0)

    def test_set_parameter_errors(self):
        with self.assertRaises(KeyError):
            self.clock.set_parameter('wind_speed', 3.0)
        with self.assertRaises(ValueError):
            self.clock.set_parameter('dt', 1.0)

    def test_snapshot_is_a_copy(self):
        snapshot=self.clock.snapshot()
        snapshot['concentrations']['O3']=0.0
        snapshot['environment']['emissions']['CH4']=0.0
        self.assertEqual(self.clock.concentrations['O3'], 40.0)
        self.assertEqual(self.clock.env['emissions']['CH4'], 10.0)
        self.assertEqual(snapshot['state'], Simulation_clock.STOPPED)
        self.assertTrue(snapshot['daytime'])

class TestClockDynamics(unittest.TestCase):

    """
    Test the diurnal cycle and sampling as the clock runs
    """

    def test_diurnal_angle_follows_time(self):
        clock=SimulationClock()
        clock.start(now=0.0)
        self.assertEqual(clock.tick(now=6*3600.0), 360)
        self.assertEqual(clock.time, 6*3600.0)
        self.assertEqual(clock.sza, 45.0)
        self.assertTrue(clock.snapshot()['daytime'])

    def test_fixed_angle(self):
        clock=SimulationClock()
        clock.set_parameter('diurnal', False)
        clock.set_parameter('sza', 30.0)
        clock.start(now=0.0)
        clock.tick(now=3600.0)
        self.assertEqual(clock.sza, 30.0)

    def test_switching_diurnal_off_holds_angle(self):
        clock=SimulationClock()
        clock.start(now=0.0)
        clock.tick(now=6*3600.0)
        # Ignored while the cycle drives the angle
        clock.set_parameter('sza', 10.0)
        self.assertEqual(clock.env['sza'], 0.0)
        clock.set_parameter('diurnal', False)
        self.assertEqual(clock.env['sza'], 45.0)
        clock.tick(now=7*3600.0)
        self.assertEqual(clock.sza, 45.0)

    def test_night_fixed_angle_keeps_photolysis_off(self):
        env=Environment.default_environment()
        env['diurnal']=False
        env['sza']=90.0
        env['emissions']={'CH4':0.0, 'CO':0.0}
        sim_state=Simulation_clock.initial_state('background')
        new_state=Simulation_clock.step_simulation(sim_state, env, 60.0)
        # NO2 photolysis is the only source of NO, so at night NO can only fall
        self.assertLess(new_state['concentrations']['NO'], sim_state['concentrations']['NO'])

    def test_step_simulation_is_pure(self):
        env=Environment.default_environment()
        sim_state=Simulation_clock.initial_state('polluted')
        before=copy.deepcopy(sim_state)
        new_state=Simulation_clock.step_simulation(sim_state, env, 60.0)
        self.assertEqual(sim_state['time'], before['time'])
        self.assertEqual(dict(sim_state['concentrations']), dict(before['concentrations']))
        self.assertEqual(new_state['time'], 60.0)
        self.assertEqual(new_state['sza'], Trop_constants.zenith(60.0))

    def test_sampling_stride(self):
        clock=SimulationClock()
        for step in range(25):
            clock.step()
        # Samples at the first step and then every 10 steps of 60 s
        t_array, y_matrix = clock.time_series.as_arrays()
        npt.assert_array_equal(t_array, numpy.array([60.0, 660.0, 1260.0]))
        self.assertEqual(y_matrix.shape, (3, 10))

    def test_sampling_over_long_tick(self):
        clock=SimulationClock()
        clock.start(now=0.0)
        clock.tick(now=6*3600.0)
        t_array, y_matrix = clock.time_series.as_arrays()
        self.assertEqual(len(t_array), 36)
        self.assertTrue(numpy.all(numpy.diff(t_array) > 0.0))
        self.assertTrue(numpy.all(y_matrix >= 0.0))

    def test_deterministic(self):
        clocks=[SimulationClock(preset='polluted'), SimulationClock(preset='polluted')]
        for clock in clocks:
            clock.start(now=0.0)
            for now in [30.0, 700.0, 720.0, 4000.0]:
                clock.tick(now=now)
        t1, y1 = clocks[0].time_series.as_arrays()
        t2, y2 = clocks[1].time_series.as_arrays()
        npt.assert_array_equal(t1, t2)
        npt.assert_array_equal(y1, y2)

class TestTimeSeries(unittest.TestCase):

    """
    Test storage and export of the sampled time series
    """

    header='Time(hours),CH₄(ppb),CO(ppb),CO₂(ppb),OH(ppb),HO₂(ppb),O₃(ppb),NO(ppb),NO₂(ppb),CH₃O₂(ppb),CH₂O(ppb)'

    def test_empty_csv(self):
        self.assertEqual(TimeSeries().to_csv(), self.header+'\n')

    def test_csv_rows(self):
        clock=SimulationClock()
        for step in range(11):
            clock.step()
        text=clock.time_series.to_csv()
        lines=text.splitlines()
        self.assertEqual(lines[0], self.header)
        self.assertEqual(len(lines), 3)
        fields=lines[1].split(',')
        self.assertEqual(len(fields), 11)
        self.assertEqual(fields[0], '0.0167')
        self.assertEqual(lines[2].split(',')[0], '0.1833')
        for field in fields[1:]:
            self.assertEqual(len(field.split('.')[1]), 6)
        # Export does not change the buffer
        self.assertEqual(clock.time_series.to_csv(), text)
        self.assertEqual(len(clock.time_series), 2)

    def test_csv_values(self):
        series=TimeSeries()
        y=numpy.arange(10, dtype=numpy.float64)*1.5
        series.append(7200.0, y)
        row=series.to_csv().splitlines()[1]
        self.assertEqual(row, '2.0000,0.000000,1.500000,3.000000,4.500000,6.000000,7.500000,9.000000,10.500000,12.000000,13.500000')

    def test_append_in_time_order(self):
        series=TimeSeries()
        series.append(120.0, numpy.zeros(10))
        with self.assertRaises(AssertionError):
            series.append(60.0, numpy.zeros(10))

    def test_samples_and_clear(self):
        series=TimeSeries()
        series.append(60.0, numpy.ones(10))
        samples=series.samples()
        self.assertEqual(samples[0][0], 60.0)
        self.assertEqual(list(samples[0][1].keys()), list(Trop_mechanism.SPECIES.keys()))
        series.clear()
        self.assertEqual(len(series), 0)
        self.assertIsNone(series.last_time())
        self.assertTrue(series.should_sample(600.0, 60.0))
        series.append(600.0, numpy.ones(10))
        self.assertEqual(series.last_time(), 600.0)
        self.assertFalse(series.should_sample(1140.0, 60.0))
        self.assertTrue(series.should_sample(1200.0, 60.0))

    def test_save(self):
        series=TimeSeries()
        series.append(60.0, numpy.ones(10))
        series.append(660.0, numpy.full(10, 2.0))
        with tempfile.TemporaryDirectory() as tmpdir:
            filename=os.path.join(tmpdir, 'series.npz')
            series.save(filename)
            with numpy.load(filename) as data:
                npt.assert_array_equal(data['time'], numpy.array([60.0, 660.0]))
                self.assertEqual(data['concentrations'].shape, (2, 10))
                self.assertEqual(list(data['species']), list(Trop_mechanism.SPECIES.keys()))

# Start of the main body of code
if __name__=='__main__':

    # Now run the testing suite
    unittest.main()
